from __future__ import annotations
from fractions import Fraction

Q = Fraction  # rational type alias

# Digits shared by the formatter, the parser and qstr. Order defines the
# value of each symbol; the length bounds the largest usable radix.
DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZÆØÅÞÐŒ"
MAX_RADIX = len(DIGITS)

def to_q(x: int | float | str | Fraction) -> Q:
    """Convert to rational Q safely (floats go through string to avoid binary artifacts)."""
    if isinstance(x, Fraction):
        return x
    if isinstance(x, float):
        return Q(str(x))  # avoid binary float rounding noise
    return Q(x)

def whole_part(x: Q) -> int:
    """Integer part of x, truncated towards zero."""
    n = abs(x.numerator) // x.denominator
    return -n if x < 0 else n

def ceiling(x: Q) -> int:
    # Python's // floors, so negate twice to get the ceiling
    return -(-x.numerator // x.denominator)

def is_integer(q: Q) -> bool:
    return q.denominator == 1

def round_to_grid(x: Q, grid: Q) -> Q:
    """
    Round x to the nearest multiple of grid (ties to even).
    Keeps iterates of exact fixed-point methods on a bounded denominator.
    """
    if grid <= 0:
        raise ValueError(f"round_to_grid requires grid > 0. got grid = {grid}")
    return Q(round(x / grid)) * grid

def qstr(q: Fraction, radix: int = 10) -> str:
    """
    Exact positional expansion of a Fraction in the given radix.
    - If it terminates, returns all digits.
    - If it repeats, returns a string with the repeating part in parentheses, e.g. "0.(3)".
    """
    if not 2 <= radix <= MAX_RADIX:
        raise ValueError(f"qstr: radix must be in 2..{MAX_RADIX}, got {radix}")
    if q == 0:
        return "0"

    sign = '-' if q < 0 else ''
    n = abs(q.numerator)
    d = q.denominator

    int_part = n // d
    rem = n % d
    int_digits = []
    while True:
        int_part, digit = divmod(int_part, radix)
        int_digits.append(DIGITS[digit])
        if int_part == 0:
            break
    whole = ''.join(reversed(int_digits))
    if rem == 0:
        return f"{sign}{whole}"

    # Long division for fractional part with cycle detection
    digits = []
    seen = {}  # remainder -> index in digits

    while rem != 0 and rem not in seen:
        seen[rem] = len(digits)
        rem *= radix
        digits.append(DIGITS[rem // d])
        rem = rem % d

    if rem == 0:
        return f"{sign}{whole}.{''.join(digits)}"
    start = seen[rem]
    nonrep = ''.join(digits[:start])
    rep = ''.join(digits[start:])
    return f"{sign}{whole}.{nonrep}({rep})"
