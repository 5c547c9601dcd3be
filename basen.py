"""
Positional numerals in any radix from 2 to MAX_RADIX, with fractional digits.

format_number renders an exact rational as digits (truncated to a number of
fractional places) or as numerator/denominator. parse_number reads a single
literal: a digit string, a bound name, or root(a,b).
"""
from typing import Callable, Dict, List, Mapping, Optional

from arithmetic import Q, DIGITS, MAX_RADIX, ceiling, is_integer, qstr, to_q, whole_part
from faults import EvalFault, InvalidBaseError, InvalidRootError, UnknownDigitError, report
from rootfinding import nroot

RADIX_POINTS = ",."
ROOT_PREFIX = "root("

# Letters are accepted in either case.
_DIGIT_VALUES: Dict[str, int] = {}
for _value, _symbol in enumerate(DIGITS):
    _DIGIT_VALUES[_symbol] = _value
    _DIGIT_VALUES[_symbol.lower()] = _value

def _check_output_radix(radix: Q) -> None:
    if not is_integer(radix) or not 2 <= radix <= MAX_RADIX:
        raise InvalidBaseError(f"Output base must be an integer in 2..{MAX_RADIX}, got {qstr(radix)}")

def _check_input_radix(radix: Q) -> None:
    if radix <= 1 or ceiling(radix) > MAX_RADIX:
        raise InvalidBaseError(f"Input base must lie in (1, {MAX_RADIX}], got {qstr(radix)}")

def format_number(value: Q, radix: Q, precision: int, fraction_mode: bool = False) -> str:
    """
    Render value in the given radix.

    Positional output carries at most `precision` fractional digits (the
    rest is truncated, not rounded) with trailing zeros removed. In fraction
    mode a non-integral value is rendered as numerator/denominator, both in
    the given radix.
    """
    value, radix = to_q(value), to_q(radix)
    _check_output_radix(radix)
    if precision < 0:
        raise ValueError(f"precision must be non-negative, got {precision}")

    if fraction_mode and value.denominator != 1:
        return (format_number(Q(value.numerator), radix, precision)
                + "/" + format_number(Q(value.denominator), radix, precision))

    negative = value < 0
    value = abs(value)

    # pow + 1 is the number of digits left of the radix point
    pow = 0
    while value / radix ** (pow + 1) >= 1:
        pow += 1

    digits: List[str] = []
    divisor = radix ** pow
    for _ in range(pow, -precision - 1, -1):
        coefficient = whole_part(value / divisor)
        value -= coefficient * divisor
        digits.append(DIGITS[coefficient])
        divisor /= radix

    digits.insert(pow + 1, ".")
    res = "".join(digits).rstrip("0").rstrip(".")
    if res == "0":
        return res
    return "-" + res if negative else res

def _split_root_arguments(text: str):
    args = text[len(ROOT_PREFIX):-1]
    # The root index is integral, so the last comma separates the arguments;
    # an earlier one is a radix point of the radicand.
    radicand, sep, index = args.rpartition(",")
    if not sep:
        raise InvalidRootError(f"root needs two arguments, root(number,index): got {text}")
    return radicand, index

def parse_number(
    text: str,
    radix: Q,
    scope: Mapping[str, Q],
    temporaries: Optional[Mapping[str, Q]] = None,
    evaluate: Optional[Callable[[str], Q]] = None,
    faults: Optional[List[EvalFault]] = None,
) -> Q:
    """
    Decode one literal.

    `temporaries` holds the names bound while the evaluator resolved
    parentheses; they shadow the persistent `scope`. `evaluate` reduces the
    arguments of root(a,b); without it they must be literals themselves.
    An unknown digit is reported and the literal decodes to 0.
    """
    radix = to_q(radix)
    _check_input_radix(radix)
    temporaries = temporaries or {}
    num = text.strip()

    if num.startswith(ROOT_PREFIX) and num.endswith(")"):
        if evaluate is None:
            evaluate = lambda arg: parse_number(arg, radix, scope, temporaries, faults=faults)
        radicand, index = _split_root_arguments(num)
        epsilon = getattr(scope, "epsilon", None)
        if epsilon is None:
            raise InvalidRootError("root(a,b) needs a scope that provides an epsilon")
        return nroot(evaluate(radicand), whole_part(evaluate(index)), epsilon).root

    if not num:
        return Q(0)

    if num in temporaries:
        return temporaries[num]
    if num in scope:
        return scope[num]

    sign = 1
    if num.startswith("-"):
        sign = -1
        num = num[1:]

    points = [i for i in (num.find(p) for p in RADIX_POINTS) if i != -1]
    if points:
        i = min(points)
        num = num[:i] + num[i + 1:]
    else:
        i = len(num)

    width = ceiling(radix)
    magnitude = radix ** (i - 1)
    number = Q(0)
    for c in num:
        val = _DIGIT_VALUES.get(c)
        if val is None or val >= width:
            report(UnknownDigitError(f"Unknown digit {c} in base {qstr(radix)}"), faults)
            return Q(0)
        number += val * magnitude
        magnitude /= radix

    return number * sign
