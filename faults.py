from typing import List, Optional


class EvalFault(ValueError):
    """Base class of every fault the calculator raises or reports."""
    pass

class InvalidToleranceError(EvalFault):
    pass

class InvalidBracketError(EvalFault):
    pass

class DivideByZeroError(EvalFault):
    pass

class UnknownDigitError(EvalFault):
    pass

class MissingParenthesisError(EvalFault):
    pass

class InvalidBaseError(EvalFault):
    pass

class InvalidRootError(EvalFault):
    pass

class InvalidSettingError(EvalFault):
    pass


def report(fault: EvalFault, faults: Optional[List[EvalFault]] = None) -> None:
    """
    Report a fault that the caller recovers from locally.
    The message is printed; the fault is also appended to `faults` when the
    caller wants to inspect what went wrong during an evaluation.
    """
    print(f"Error: {fault}")
    if faults is not None:
        faults.append(fault)
