"""
Tests for the command-line front end (calculator.py)
"""

import io
import threading

import pytest

import calculator
from calculator import main, run_line
from scope import default_scope


@pytest.fixture
def scope():
    return default_scope()


def run(lines, scope) -> str:
    out = io.StringIO()
    for line in lines:
        run_line(line, scope, out)
    return out.getvalue()


class TestExpressions:
    def test_prints_result(self, scope) -> None:
        assert run(["2+3*4"], scope) == "14\n"

    def test_input_is_case_insensitive(self, scope) -> None:
        assert run(["$input_base:=16", "FF"], scope) == "16\n255\n"

    def test_output_base(self, scope) -> None:
        assert run(["$output_base:=16", "255"], scope) == "10\nFF\n"

    def test_assignment_echo_uses_new_output_base(self, scope) -> None:
        assert run(["$output_base:=2", "5"], scope) == "10\n101\n"
        assert run(["$output_base:=10"], scope) == "10\n"

    def test_fraction_mode(self, scope) -> None:
        assert run(["$frac:=1", "1/3"], scope) == "1\n1/3\n"

    def test_precision(self, scope) -> None:
        assert run(["$precision:=4", "1/3"], scope) == "4\n0.3333\n"

    def test_blank_line_ignored(self, scope) -> None:
        assert run(["   "], scope) == ""


class TestCommands:
    def test_list(self, scope) -> None:
        output = run(["#list"], scope)
        assert "pi: 3.14159265358979" in output
        assert "$precision: 30" in output

    def test_reset(self, scope) -> None:
        run(["x:=5", "$output_base:=2"], scope)
        output = run(["#reset"], scope)
        assert "x:" not in output
        assert "$output_base: 10" in output
        assert scope.output_base == 10

    def test_usage(self, scope) -> None:
        assert "5^(-2)" in run(["#usage"], scope)

    def test_clear(self, scope) -> None:
        assert run(["#clear"], scope) == "\033[2J\033[H"

    def test_unknown_command(self, scope) -> None:
        assert "unknown command" in run(["#nope"], scope)

    def test_solve(self, scope) -> None:
        output = run(["#solve x^2-2, 1, 2"], scope)
        assert output.startswith("x = 1.41421356237")
        assert "x" not in scope

    def test_solve_linear(self, scope) -> None:
        output = run(["#solve x-3, 0, 10"], scope)
        assert output == "x = 3 (2 iterations)\n"

    def test_solve_searches_for_bracket(self, scope) -> None:
        output = run(["#solve x^2-4, (-3), 3"], scope)
        value = output[len("x = "):].split(" (")[0]
        assert abs(float(value) + 2) < 1e-12

    def test_solve_restores_bound_x(self, scope) -> None:
        run(["x:=5", "#solve x-1, 0, 4"], scope)
        assert scope["x"] == 5

    def test_solve_usage(self, scope) -> None:
        assert "usage" in run(["#solve x-1"], scope)

    def test_solve_holds_scope_lock(self, scope, monkeypatch) -> None:
        held = []
        real_brent = calculator.brent

        def try_lock():
            acquired = scope.lock.acquire(blocking=False)
            if acquired:
                scope.lock.release()
            held.append(not acquired)

        def checked_brent(*args, **kwargs):
            other = threading.Thread(target=try_lock)
            other.start()
            other.join()
            return real_brent(*args, **kwargs)

        monkeypatch.setattr(calculator, "brent", checked_brent)
        assert run(["#solve x-3, 0, 10"], scope) == "x = 3 (2 iterations)\n"
        assert held == [True]


class TestMain:
    def test_arguments_are_evaluated(self, capsys) -> None:
        assert main(["1+1", "2*3"]) == 0
        assert capsys.readouterr().out == "2\n6\n"

    def test_fatal_fault_exits_nonzero(self, capsys) -> None:
        assert main(["$output_base:=99"]) == 1
        assert "Error:" in capsys.readouterr().out

    def test_interactive_loop_until_eof(self, monkeypatch, capsys) -> None:
        lines = iter(["1+2", "5/0"])

        def fake_input():
            try:
                return next(lines)
            except StopIteration:
                raise EOFError

        monkeypatch.setattr("builtins.input", fake_input)
        assert main([]) == 0
        out = capsys.readouterr().out
        assert "Type #usage for instructions" in out
        assert "3\n" in out
        assert "Error: Division by zero" in out
