from __future__ import annotations
from collections.abc import MutableMapping
from typing import Dict, Iterator, Optional
import math
import threading

from arithmetic import Q, MAX_RADIX, ceiling, is_integer, qstr, to_q, whole_part
from faults import InvalidSettingError

PRECISION = "$precision"
INPUT_BASE = "$input_base"
OUTPUT_BASE = "$output_base"
FRAC = "$frac"
EPSILON = "$epsilon"

RESERVED = (PRECISION, INPUT_BASE, OUTPUT_BASE, FRAC, EPSILON)

def _check_setting(name: str, value: Q) -> None:
    if name == PRECISION:
        if value < 0 or not is_integer(value):
            raise InvalidSettingError(f"{name} must be a non-negative integer, got {qstr(value)}")
    elif name == OUTPUT_BASE:
        if not is_integer(value) or not 2 <= value <= MAX_RADIX:
            raise InvalidSettingError(f"{name} must be an integer in 2..{MAX_RADIX}, got {qstr(value)}")
    elif name == INPUT_BASE:
        # Non-integral input radices are allowed; the digit set is rounded up.
        if value <= 1 or ceiling(value) > MAX_RADIX:
            raise InvalidSettingError(f"{name} must lie in (1, {MAX_RADIX}], got {qstr(value)}")
    elif name == EPSILON:
        if value <= 0:
            raise InvalidSettingError(f"{name} must be positive, got {qstr(value)}")


class Scope(MutableMapping):
    """
    Persistent name -> rational bindings: user constants plus the reserved
    configuration names ($precision, $input_base, $output_base, $frac,
    $epsilon).

    A Scope is not safe for concurrent mutation on its own. Callers sharing
    one across threads hold `lock` for the duration of an evaluation;
    evaluator.evaluate does so.
    """

    def __init__(self, values: Optional[Dict[str, Q]] = None):
        self._values: Dict[str, Q] = {}
        self.lock = threading.RLock()
        for name, value in (values or {}).items():
            self[name] = value

    def __getitem__(self, name: str) -> Q:
        return self._values[name]

    def __setitem__(self, name: str, value) -> None:
        value = to_q(value)
        _check_setting(name, value)
        self._values[name] = value

    def __delitem__(self, name: str) -> None:
        del self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        items = ", ".join(f"{k}={qstr(v)}" for k, v in self._values.items())
        return f"Scope({items})"

    @property
    def precision(self) -> int:
        return whole_part(self._values[PRECISION])

    @property
    def input_base(self) -> Q:
        return self._values[INPUT_BASE]

    @property
    def output_base(self) -> Q:
        return self._values[OUTPUT_BASE]

    @property
    def fraction_mode(self) -> bool:
        return self._values.get(FRAC, Q(0)) != 0

    @property
    def epsilon(self) -> Q:
        """Convergence tolerance for nroot: $epsilon, else $output_base^-$precision."""
        if EPSILON in self._values:
            return self._values[EPSILON]
        return Q(1) / self.output_base ** self.precision

    def reset(self) -> None:
        self._values.clear()
        self.update(_defaults())


def _defaults() -> Dict[str, Q]:
    return {
        "e": to_q(math.e),
        "pi": to_q(math.pi),
        FRAC: Q(0),
        PRECISION: Q(30),
        INPUT_BASE: Q(10),
        OUTPUT_BASE: Q(10),
    }

def default_scope() -> Scope:
    """Fresh scope holding the constants e and pi and the default configuration."""
    return Scope(_defaults())
