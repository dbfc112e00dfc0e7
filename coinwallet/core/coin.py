from __future__ import annotations

from dataclasses import dataclass

from coinwallet.core.amount import validate_amount


@dataclass(frozen=True, slots=True)
class Coin:
    denom: str
    amount: int

    def __post_init__(self) -> None:
        if not isinstance(self.denom, str):
            raise ValueError(f"denom must be a str, got {type(self.denom).__name__}")
        validate_amount(self.amount)

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


def coin(amount: int, denom: str) -> Coin:
    return Coin(denom=denom, amount=amount)
