from __future__ import annotations
from typing import List, Optional, TextIO

import sys

from arithmetic import Q
from basen import format_number
from evaluator import evaluate
from faults import EvalFault
from rootfinding import brent, find_bracket
from scope import Scope, default_scope

SOLVE_VARIABLE = "x"

USAGE = """\
Use #clear to clear the terminal
Use #list  to list constants in use
Use #reset to initialize the working environment to default
Use #solve <expression>, <left>, <right> to find x in [left, right] with expression = 0
Use the constants $precision, $input_base and $output_base to modify behaviour during calculations and parsing
To output numbers in fractional form, set $frac to nonzero
Assign constants with name:=expression (the expression is read in base 10)
Always use parentheses around negative values: 5^(-2)
"""

def render(value: Q, scope: Scope) -> str:
    return format_number(value, scope.output_base, scope.precision, scope.fraction_mode)

def list_constants(scope: Scope, out: TextIO) -> None:
    for name, value in scope.items():
        print(f"{name}: {render(value, scope)}", file=out)

def solve(args: str, scope: Scope, out: TextIO) -> None:
    """
    #solve <expression>, <left>, <right>: Brent's method on expression = 0
    over x, tolerance $epsilon. When [left, right] does not bracket a sign
    change the interval is sampled for one first.
    """
    parts = args.rsplit(",", 2)
    if len(parts) != 3:
        print("Error: usage: #solve <expression>, <left>, <right>", file=out)
        return
    expression, left_text, right_text = parts

    with scope.lock:
        base = scope.input_base
        left = evaluate(left_text, base, scope)
        right = evaluate(right_text, base, scope)

        saved = scope.get(SOLVE_VARIABLE)

        def f(x: Q) -> Q:
            scope[SOLVE_VARIABLE] = x
            return evaluate(expression, base, scope)

        try:
            lo, hi = left, right
            if f(lo) * f(hi) >= 0:
                lo, hi = find_bracket(f, left, right)
            if lo == hi:
                root, iterations = lo, 0
            else:
                result = brent(f, lo, hi, tolerance=scope.epsilon)
                root, iterations = result.root, result.iterations
        finally:
            if saved is None:
                scope.pop(SOLVE_VARIABLE, None)
            else:
                scope[SOLVE_VARIABLE] = saved

        print(f"{SOLVE_VARIABLE} = {render(root, scope)} ({iterations} iterations)", file=out)

def run_line(line: str, scope: Scope, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    line = line.strip().lower()
    if not line:
        return
    if line.startswith("#"):
        command, _, args = line.partition(" ")
        if command == "#clear":
            out.write("\033[2J\033[H")
        elif command == "#list":
            list_constants(scope, out)
        elif command == "#reset":
            scope.reset()
            list_constants(scope, out)
        elif command == "#usage":
            print(USAGE, file=out)
        elif command == "#solve":
            solve(args, scope, out)
        else:
            print(f"Error: unknown command {command}. Type #usage for instructions", file=out)
        return
    value = evaluate(line, scope.input_base, scope)
    print(render(value, scope), file=out)

def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    scope = default_scope()

    if argv:
        for expression in argv:
            try:
                run_line(expression, scope)
            except EvalFault as e:
                print(f"Error: {e}")
                return 1
        return 0

    print("Type #usage for instructions")
    while True:
        try:
            line = input()
        except (EOFError, KeyboardInterrupt):
            return 0
        try:
            run_line(line, scope)
        except EvalFault as e:
            print(f"Error: {e}")

if __name__ == "__main__":
    sys.exit(main())
