"""
Expression evaluation by ordered substring scanning.

There is no tokenizer and no syntax tree. A call reduces its string in a
fixed order:

  1. `name := expr`  assignment into the persistent scope (right side in base 10)
  2. `( ... )`       the last '(' and the first ')' after it are evaluated,
                     bound to a temporary name ($v0, $v1, ...) and spliced in
  3. + - * / ^       split at the first occurrence, in that order
  4. a literal       handed to basen.parse_number

Scanning '+' and '-' before '*', '/' and '^' gives the usual precedence for
most inputs. Operators are binary only: negative operands must be written
in parentheses, e.g. 5^(-2), and a-b-c is grouped as a-(b-c).
"""
from typing import Dict, List, Optional

from arithmetic import Q, to_q
from basen import ROOT_PREFIX, parse_number
from faults import DivideByZeroError, EvalFault, MissingParenthesisError, report
from rootfinding import nroot
from scope import Scope

ASSIGN = ":="
OPERATORS = "+-*/^"
TEMP_PREFIX = "$v"
ASSIGNMENT_BASE = Q(10)


class _Reduction:
    """State of one top-level evaluate call: the temporaries and their counter."""

    def __init__(self, scope: Scope, faults: Optional[List[EvalFault]]):
        self.scope = scope
        self.faults = faults
        self.temporaries: Dict[str, Q] = {}
        self.counter = 0

    def bind(self, value: Q) -> str:
        name = f"{TEMP_PREFIX}{self.counter}"
        while name in self.scope or name in self.temporaries:
            self.counter += 1
            name = f"{TEMP_PREFIX}{self.counter}"
        self.counter += 1
        self.temporaries[name] = value
        return name

    def literal(self, text: str, base: Q) -> Q:
        return parse_number(text, base, self.scope, self.temporaries,
                            evaluate=lambda arg: self.reduce(arg, base), faults=self.faults)

    def reduce(self, expr: str, base: Q) -> Q:
        i = expr.find(ASSIGN)
        if i != -1:
            name = expr[:i].strip()
            value = self.reduce(expr[i + len(ASSIGN):], ASSIGNMENT_BASE)
            self.scope[name] = value
            return value

        i = expr.rfind("(")
        if i != -1:
            close = expr.find(")", i)
            if close == -1:
                report(MissingParenthesisError(f"Missing end parenthesis in {expr}"), self.faults)
                expr += ")"
                close = len(expr) - 1

            start = i - len(ROOT_PREFIX) + 1
            if start >= 0 and expr[start:i + 1] == ROOT_PREFIX:
                value = self.literal(expr[start:close + 1], base)
            else:
                start = i
                value = self.reduce(expr[i + 1:close], base)

            expr = expr[:start] + self.bind(value) + expr[close + 1:]
            return self.reduce(expr, base)

        for op in OPERATORS:
            i = expr.find(op)
            if i != -1:
                return self.apply(op, expr[:i], expr[i + 1:], base)

        return self.literal(expr, base)

    def apply(self, op: str, left_text: str, right_text: str, base: Q) -> Q:
        left = self.reduce(left_text, base)
        right = self.reduce(right_text, base)
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            if right == 0:
                report(DivideByZeroError("Division by zero"), self.faults)
                return Q(0)
            return left / right

        # left^(n/d) = root(left^n, d)
        if left == 0 and right < 0:
            return self.reduce("0/0", base)
        powered = left ** right.numerator
        if right.denominator == 1:
            return powered
        return nroot(powered, right.denominator, self.scope.epsilon).root


def evaluate(expression: str, input_base, scope: Scope, faults: Optional[List[EvalFault]] = None) -> Q:
    """
    Evaluate `expression` exactly, reading numeric literals in `input_base`.

    Assignments write into `scope`. Recoverable faults (division by zero,
    unknown digits, a missing ')') are reported, appended to `faults` when a
    list is given, and evaluation continues with 0 or a synthesized ')'.
    Other faults are raised.
    """
    with scope.lock:
        return _Reduction(scope, faults).reduce(expression.strip(), to_q(input_base))
