from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from coinwallet.core.amount import checked_add, checked_sub
from coinwallet.core.coin import Coin
from coinwallet.core.errors import UnderflowError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Wallet:
    """Ordered list of coins with balance helpers.

    Canonical form is sorted by denom with no zero amounts and no duplicate
    denoms. ``normalize`` establishes it; ``add``, ``merge`` and ``subtract``
    preserve it when the wallet already holds it. Mutating methods work in
    place; ``subtract``, ``plus`` and ``combined`` leave the receiver untouched
    and return a new wallet.
    """

    coins: list[Coin] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.coins = list(self.coins)

    @classmethod
    def from_coins(cls, coins: Iterable[Coin]) -> Wallet:
        return cls(coins=list(coins))

    def into_list(self) -> list[Coin]:
        return list(self.coins)

    def copy(self) -> Wallet:
        return Wallet(coins=list(self.coins))

    def __iter__(self) -> Iterator[Coin]:
        return iter(self.coins)

    def __len__(self) -> int:
        return len(self.coins)

    def __str__(self) -> str:
        return ",".join(str(c) for c in self.coins)

    def has(self, required: Coin) -> bool:
        """True if the wallet holds at least ``required.amount`` of ``required.denom``."""
        found = self._find(required.denom)
        if found is None:
            return False
        return found[1].amount >= required.amount

    def is_canonical(self) -> bool:
        if any(c.amount == 0 for c in self.coins):
            return False
        return all(a.denom < b.denom for a, b in zip(self.coins, self.coins[1:]))

    def normalize(self) -> None:
        """Drop zero amounts, sort by denom and merge runs of the same denom."""
        nonzero = [c for c in self.coins if c.amount != 0]
        # stable: equal denoms keep their relative order before merging
        nonzero.sort(key=lambda c: c.denom)

        merged: list[Coin] = []
        for c in nonzero:
            if merged and merged[-1].denom == c.denom:
                merged[-1] = Coin(denom=c.denom, amount=checked_add(merged[-1].amount, c.amount))
            else:
                merged.append(c)

        if len(merged) != len(self.coins):
            logger.debug(
                "normalized wallet entries=%d pruned_zero=%d merged=%d",
                len(merged),
                len(self.coins) - len(nonzero),
                len(nonzero) - len(merged),
            )
        self.coins[:] = merged

    def _find(self, denom: str) -> tuple[int, Coin] | None:
        for i, c in enumerate(self.coins):
            if c.denom == denom:
                return i, c
        return None

    def _insert_pos(self, denom: str) -> int | None:
        # only meaningful when denom is absent; None means append
        for i, c in enumerate(self.coins):
            if c.denom >= denom:
                return i
        return None

    def add(self, other: Coin) -> Wallet:
        found = self._find(other.denom)
        if found is not None:
            i, existing = found
            self.coins[i] = Coin(denom=existing.denom, amount=checked_add(existing.amount, other.amount))
            return self
        idx = self._insert_pos(other.denom)
        if idx is None:
            self.coins.append(other)
        else:
            self.coins.insert(idx, other)
        return self

    def merge(self, other: Wallet) -> Wallet:
        for c in list(other.coins):
            self.add(c)
        return self

    def plus(self, other: Coin) -> Wallet:
        return self.copy().add(other)

    def combined(self, other: Wallet) -> Wallet:
        return self.copy().merge(other)

    def subtract(self, other: Coin) -> Wallet:
        found = self._find(other.denom)
        if found is None:
            logger.debug("subtract underflow denom=%s held=0 requested=%d", other.denom, other.amount)
            raise UnderflowError(minuend=0, subtrahend=other.amount)
        i, existing = found
        try:
            remainder = checked_sub(existing.amount, other.amount)
        except UnderflowError:
            logger.debug(
                "subtract underflow denom=%s held=%d requested=%d",
                other.denom,
                existing.amount,
                other.amount,
            )
            raise

        result = self.copy()
        if remainder == 0:
            del result.coins[i]
        else:
            result.coins[i] = Coin(denom=existing.denom, amount=remainder)
        return result
