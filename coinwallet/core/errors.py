from __future__ import annotations


class UnderflowError(ArithmeticError):
    """Raised when a subtraction would take an amount below zero.

    A denomination missing from a wallet is reported the same way, with a
    minuend of zero.
    """

    def __init__(self, minuend: int, subtrahend: int) -> None:
        self.minuend = minuend
        self.subtrahend = subtrahend
        super().__init__(f"Cannot subtract {subtrahend} from {minuend}")

    @property
    def requested(self) -> int:
        return self.subtrahend


class AmountOverflowError(ArithmeticError):
    def __init__(self, left: int, right: int) -> None:
        self.left = left
        self.right = right
        super().__init__(f"Cannot add {left} and {right}: result exceeds uint128")
