"""Integer calculator behind the `/calculator` demo endpoint."""


class InvalidOperatorError(ValueError):
    pass


def _div(a: int, b: int) -> int:
    # integer division truncating toward zero; b == 0 raises ZeroDivisionError
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


OPERATIONS = {
    "add": lambda a, b: a + b,
    "sub": lambda a, b: a - b,
    "mul": lambda a, b: a * b,
    "div": _div,
}


def calculate(a: int, b: int, op: str = "add") -> int:
    """Apply `op` to `a` and `b`.

    Raises `InvalidOperatorError` for an unknown operator and lets
    `ZeroDivisionError` propagate for division by zero.
    """
    try:
        fn = OPERATIONS[op]
    except KeyError:
        raise InvalidOperatorError(f"Invalid operator: {op}") from None
    return fn(a, b)
