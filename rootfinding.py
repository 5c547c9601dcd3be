"""
Root finding over exact rationals.

Every method solves f(x) = target by working on g(x) = f(x) - target and is
capped at MAX_ITERATIONS. Reaching the cap is not an error: the best
estimate is returned, and callers needing a convergence guarantee inspect
RootResult.iterations and RootResult.error_estimate.

Brent's method follows chapter 4 of "Algorithms for Minimization without
Derivatives" (R. Brent), restated as a single loop.
"""
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from arithmetic import Q, qstr, round_to_grid
from faults import InvalidBracketError, InvalidRootError, InvalidToleranceError

MAX_ITERATIONS = 50
DEFAULT_TOLERANCE = Q(1, 100_000_000)

# nroot rounds each guess to epsilon / NROOT_GRID_DIVISOR
NROOT_GRID_DIVISOR = 1024

Function = Callable[[Q], Q]

@dataclass(frozen=True)
class RootResult:
    """Approximate root with convergence bookkeeping.

    error_estimate is the final bracket width for bisect, half the final
    bracket for brent, and the last step size for newton and nroot.
    """
    root: Q
    iterations: int
    error_estimate: Q

def _check_tolerance(tolerance: Q) -> None:
    if tolerance <= 0:
        raise InvalidToleranceError(f"Tolerance must be positive. Received {qstr(Q(tolerance))}.")

def _shifted(f: Function, target: Q) -> Function:
    if target == 0:
        return f
    return lambda x: f(x) - target

def _check_bracket(g_left: Q, g_right: Q, target: Q) -> None:
    if g_left * g_right >= 0:
        raise InvalidBracketError(
            "Invalid starting bracket. Function must be above target on one end and below target on other end. "
            f"Target: {qstr(target)}. f(left) = {qstr(g_left + target)}. f(right) = {qstr(g_right + target)}"
        )

def bisect(f: Function, left: Q, right: Q, tolerance: Q = DEFAULT_TOLERANCE, target: Q = Q(0)) -> RootResult:
    _check_tolerance(tolerance)
    left, right, target = Q(left), Q(right), Q(target)
    if left > right:
        left, right = right, left
    g = _shifted(f, target)

    g_left = g(left)
    g_right = g(right)
    _check_bracket(g_left, g_right, target)

    width = right - left
    iterations = 0
    while iterations < MAX_ITERATIONS and width > tolerance:
        iterations += 1
        width /= 2
        mid = left + width
        g_mid = g(mid)
        if g_mid == 0:
            return RootResult(mid, iterations, Q(0))
        if g_left * g_mid < 0:      # sign change in (left, mid)
            right, g_right = mid, g_mid
        else:                       # sign change in (mid, right)
            left, g_left = mid, g_mid
    return RootResult(left, iterations, right - left)

def brent(f: Function, left: Q, right: Q, tolerance: Q = DEFAULT_TOLERANCE, target: Q = Q(0)) -> RootResult:
    _check_tolerance(tolerance)
    t, target = Q(tolerance), Q(target)
    g = _shifted(f, target)

    # Brent's notation: b is the best estimate, a the previous one and c the
    # other end of the bracket; d is the current step, e the one before.
    a, b = Q(left), Q(right)
    fa, fb = g(a), g(b)
    _check_bracket(fa, fb, target)

    c, fc = a, fa
    d = e = b - a
    iterations = 0
    while True:
        if abs(fc) < abs(fb):
            a, b, c = b, c, b
            fa, fb, fc = fb, fc, fb

        iterations += 1
        tol = 2 * t * abs(b) + t
        m = (c - b) / 2
        if abs(m) <= tol or fb == 0:    # exact comparison with 0 is fine on rationals
            return RootResult(b, iterations, abs(m))

        if abs(e) < tol or abs(fa) <= abs(fb):
            d = e = m   # bisection forced
        else:
            s = fb / fa
            if a == c:
                # linear interpolation
                p = 2 * m * s
                q = 1 - s
            else:
                # inverse quadratic interpolation
                q = fa / fc
                r = fb / fc
                p = s * (2 * m * q * (q - r) - (b - a) * (r - 1))
                q = (q - 1) * (r - 1) * (s - 1)
            if p > 0:
                q = -q
            else:
                p = -p
            s, e = e, d
            if 2 * p < 3 * m * q - abs(tol * q) and p < abs(s * q / 2):
                d = p / q
            else:
                d = e = m

        a, fa = b, fb
        if abs(d) > tol:
            b += d
        elif m > 0:
            b += tol
        else:
            b -= tol
        if iterations == MAX_ITERATIONS:
            return RootResult(b, iterations, abs(m))

        fb = g(b)
        if (fb > 0) == (fc > 0):
            # b and c no longer bracket the root
            c, fc = a, fa
            d = e = b - a

def newton(f: Function, fprime: Function, guess: Q, tolerance: Q = DEFAULT_TOLERANCE, target: Q = Q(0)) -> RootResult:
    """
    Plain Newton-Raphson. g = f - target has the same derivative as f, so
    fprime is used unchanged. A zero derivative raises ZeroDivisionError.
    """
    _check_tolerance(tolerance)
    g = _shifted(f, Q(target))

    x = Q(guess)
    error = tolerance * 2
    iterations = 0
    while iterations < MAX_ITERATIONS and error > tolerance:
        iterations += 1
        step = g(x) / fprime(x)
        x -= step
        error = abs(step)
    return RootResult(x, iterations, error)

def _nroot_seed(number: Q, root: int) -> Q:
    bits = abs(number.numerator).bit_length() - number.denominator.bit_length()
    return Q(2) ** -(-bits // root)

def nroot(number: Q, root: int, epsilon: Q, guess: Optional[Q] = None, max_iterations: int = MAX_ITERATIONS) -> RootResult:
    """
    Solve x^root = number with Newton's method seeded at `guess`.

    Without a guess the seed is the power of two nearest the root as judged
    from the bit lengths of the radicand: 2 for radicands from 2 up to 4,
    and close to the root for huge or tiny ones, so the iteration cap is
    not spent halving a far-off guess.

    Iterates x <- x - (x^(root-1)*x - number) / (root*x^(root-1)) until two
    successive guesses differ by at most epsilon. Guesses are rounded to a
    grid of epsilon / NROOT_GRID_DIVISOR, which bounds the size of the
    fractions involved.
    """
    _check_tolerance(epsilon)
    number = Q(number)
    root = int(root)
    if root < 1:
        raise InvalidRootError(f"Root index must be a positive integer, got {root}")
    if root == 1:
        return RootResult(number, 0, Q(0))
    if number == 0:
        return RootResult(Q(0), 0, Q(0))

    grid = Q(epsilon) / NROOT_GRID_DIVISOR
    x = _nroot_seed(number, root) if guess is None else Q(guess)
    error = abs(x)
    iterations = 0
    while iterations < max_iterations:
        iterations += 1
        part = x ** (root - 1)
        if part == 0:
            break
        next_x = round_to_grid(x - (part * x - number) / (root * part), grid)
        error = abs(next_x - x)
        x = next_x
        if error <= epsilon:
            break
    return RootResult(x, iterations, error)

def find_bracket(f: Function, left: Q, right: Q, samples: int = 64, target: Q = Q(0)) -> Tuple[Q, Q]:
    """
    Sample g = f - target at `samples` equal subintervals of [left, right]
    and return the first pair of neighbouring points where g changes sign.
    A sample where g is exactly zero is returned as the bracket (x, x).
    """
    if samples < 1:
        raise ValueError(f"samples must be positive, got {samples}")
    left, right, target = Q(left), Q(right), Q(target)
    g = _shifted(f, target)

    step = (right - left) / samples
    points = [left + k * step for k in range(samples + 1)]
    values = [g(x) for x in points]
    signs = np.array([(v > 0) - (v < 0) for v in values], dtype=np.int8)

    zeros = np.flatnonzero(signs == 0)
    changes = np.flatnonzero(signs[:-1] * signs[1:] < 0)
    if zeros.size and (changes.size == 0 or zeros[0] <= changes[0]):
        x = points[int(zeros[0])]
        return x, x
    if changes.size == 0:
        raise InvalidBracketError(
            f"No sign change of f - {qstr(target)} found on [{qstr(left)}, {qstr(right)}] "
            f"with {samples} samples."
        )
    k = int(changes[0])
    return points[k], points[k + 1]
