from __future__ import annotations

from coinwallet.core.errors import AmountOverflowError, UnderflowError

MAX_AMOUNT = 2**128 - 1


def validate_amount(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"amount must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"amount cannot be negative: {value}")
    if value > MAX_AMOUNT:
        raise ValueError(f"amount exceeds uint128: {value}")
    return value


def checked_add(left: int, right: int) -> int:
    total = left + right
    if total > MAX_AMOUNT:
        raise AmountOverflowError(left, right)
    return total


def checked_sub(left: int, right: int) -> int:
    if right > left:
        raise UnderflowError(minuend=left, subtrahend=right)
    return left - right
