import logging

import pytest

from coinwallet.core.amount import MAX_AMOUNT
from coinwallet.core.coin import coin
from coinwallet.core.errors import AmountOverflowError, UnderflowError
from coinwallet.core.wallet import Wallet


def _base() -> Wallet:
    return Wallet([coin(555, "BTC"), coin(12345, "ETH")])


# ---------------------------------------------------------------------------
# has
# ---------------------------------------------------------------------------


def test_wallet_has_works() -> None:
    wallet = _base()
    assert wallet.has(coin(777, "ETH"))
    assert wallet.has(coin(555, "BTC"))
    assert not wallet.has(coin(12346, "ETH"))
    assert not wallet.has(coin(456, "ETC"))


def test_wallet_has_zero_of_absent_denom_is_false() -> None:
    assert not Wallet().has(coin(0, "ATOM"))


# ---------------------------------------------------------------------------
# add / merge
# ---------------------------------------------------------------------------


def test_wallet_add_works() -> None:
    more_eth = _base().add(coin(54321, "ETH"))
    assert more_eth == Wallet([coin(555, "BTC"), coin(66666, "ETH")])

    add_atom = _base().add(coin(777, "ATOM"))
    assert add_atom == Wallet([coin(777, "ATOM"), coin(555, "BTC"), coin(12345, "ETH")])


def test_wallet_add_inserts_in_sorted_position_or_appends() -> None:
    wallet = Wallet([coin(1, "ATOM"), coin(3, "ETH")])
    wallet.add(coin(2, "BTC"))
    wallet.add(coin(4, "OSMO"))
    assert [c.denom for c in wallet] == ["ATOM", "BTC", "ETH", "OSMO"]
    assert wallet.is_canonical()


def test_wallet_add_mutates_in_place_and_returns_self() -> None:
    wallet = Wallet([coin(555, "BTC")])
    returned = wallet.add(coin(777, "ATOM"))
    assert returned is wallet
    assert wallet == Wallet([coin(777, "ATOM"), coin(555, "BTC")])


def test_wallet_add_overflow_propagates_and_leaves_entry() -> None:
    wallet = Wallet([coin(MAX_AMOUNT, "BTC")])
    with pytest.raises(AmountOverflowError):
        wallet.add(coin(1, "BTC"))
    assert wallet == Wallet([coin(MAX_AMOUNT, "BTC")])


def test_wallet_in_place_merge() -> None:
    wallet = Wallet([coin(555, "BTC")])
    wallet.add(coin(777, "ATOM"))
    wallet.merge(Wallet([coin(666, "ETH"), coin(123, "ATOM")]))
    assert wallet == Wallet([coin(900, "ATOM"), coin(555, "BTC"), coin(666, "ETH")])

    combined = wallet.combined(Wallet([coin(234, "BTC")]))
    assert combined == Wallet([coin(900, "ATOM"), coin(789, "BTC"), coin(666, "ETH")])
    # consuming form leaves the receiver untouched
    assert wallet == Wallet([coin(900, "ATOM"), coin(555, "BTC"), coin(666, "ETH")])


def test_wallet_merge_accepts_non_canonical_other() -> None:
    wallet = _base()
    wallet.merge(Wallet([coin(1, "ETH"), coin(0, "ZZZ"), coin(2, "ATOM"), coin(3, "ETH")]))
    assert wallet.into_list() == [
        coin(2, "ATOM"),
        coin(555, "BTC"),
        coin(12349, "ETH"),
        coin(0, "ZZZ"),
    ]


def test_wallet_merge_with_itself_doubles_balances() -> None:
    wallet = _base()
    wallet.merge(wallet)
    assert wallet == Wallet([coin(1110, "BTC"), coin(24690, "ETH")])


def test_wallet_plus_returns_new_wallet() -> None:
    wallet = _base()
    result = wallet.plus(coin(1, "ATOM"))
    assert result is not wallet
    assert wallet == _base()
    assert result == Wallet([coin(1, "ATOM"), coin(555, "BTC"), coin(12345, "ETH")])


# ---------------------------------------------------------------------------
# subtract
# ---------------------------------------------------------------------------


def test_wallet_subtract_works() -> None:
    wallet = _base()

    less_eth = wallet.subtract(coin(2345, "ETH"))
    assert less_eth == Wallet([coin(555, "BTC"), coin(10000, "ETH")])

    no_btc = wallet.subtract(coin(555, "BTC"))
    assert no_btc == Wallet([coin(12345, "ETH")])

    with pytest.raises(UnderflowError) as excinfo:
        wallet.subtract(coin(666, "BTC"))
    assert excinfo.value.requested == 666
    assert excinfo.value.minuend == 555

    with pytest.raises(UnderflowError) as excinfo:
        wallet.subtract(coin(1, "ATOM"))
    assert excinfo.value.requested == 1
    assert excinfo.value.minuend == 0


def test_wallet_subtract_never_mutates_receiver() -> None:
    wallet = _base()
    wallet.subtract(coin(555, "BTC"))
    with pytest.raises(UnderflowError):
        wallet.subtract(coin(99999, "ETH"))
    assert wallet == _base()


def test_wallet_subtract_underflow_logs_at_debug(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="coinwallet.core.wallet")
    with pytest.raises(UnderflowError):
        _base().subtract(coin(1, "ATOM"))
    assert "subtract underflow denom=ATOM" in caplog.text


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------


def test_normalize_wallet() -> None:
    wallet = Wallet([coin(123, "ETH"), coin(0, "BTC"), coin(8990, "ATOM")])
    wallet.normalize()
    assert wallet == Wallet([coin(8990, "ATOM"), coin(123, "ETH")])

    wallet = Wallet([coin(123, "ETH"), coin(789, "BTC"), coin(321, "ETH"), coin(11, "BTC")])
    wallet.normalize()
    assert wallet == Wallet([coin(800, "BTC"), coin(444, "ETH")])


def test_normalize_collapses_runs_longer_than_two() -> None:
    wallet = Wallet(
        [coin(1, "BTC"), coin(2, "BTC"), coin(0, "BTC"), coin(4, "BTC"), coin(8, "BTC"), coin(5, "ATOM")]
    )
    wallet.normalize()
    assert wallet == Wallet([coin(5, "ATOM"), coin(15, "BTC")])


def test_normalize_drops_denoms_with_only_zero_amounts() -> None:
    wallet = Wallet([coin(0, "BTC"), coin(0, "BTC"), coin(0, "ETH")])
    wallet.normalize()
    assert wallet == Wallet()
    assert wallet.is_canonical()


def test_normalize_is_idempotent() -> None:
    wallet = Wallet([coin(3, "ETH"), coin(2, "BTC"), coin(1, "ETH")])
    wallet.normalize()
    once = wallet.into_list()
    wallet.normalize()
    assert wallet.into_list() == once


def test_normalize_after_merge_is_commutative() -> None:
    a = Wallet([coin(3, "ETH"), coin(0, "BTC"), coin(7, "ATOM"), coin(1, "ETH")])
    b = Wallet([coin(2, "BTC"), coin(5, "ETH"), coin(9, "OSMO")])

    left = a.copy()
    left.merge(b)
    left.normalize()
    right = b.copy()
    right.merge(a)
    right.normalize()
    assert left == right
    assert left == Wallet([coin(7, "ATOM"), coin(2, "BTC"), coin(9, "ETH"), coin(9, "OSMO")])


def test_normalize_preserves_per_denom_sums() -> None:
    entries = [coin(4, "b"), coin(0, "a"), coin(6, "c"), coin(1, "b"), coin(0, "c"), coin(2, "a")]
    expected: dict[str, int] = {}
    for c in entries:
        expected[c.denom] = expected.get(c.denom, 0) + c.amount

    wallet = Wallet(entries)
    wallet.normalize()
    assert {c.denom: c.amount for c in wallet} == {d: t for d, t in expected.items() if t}
    assert wallet.is_canonical()


def test_normalize_overflow_leaves_wallet_unchanged() -> None:
    entries = [coin(MAX_AMOUNT, "BTC"), coin(0, "ETH"), coin(1, "BTC")]
    wallet = Wallet(entries)
    with pytest.raises(AmountOverflowError):
        wallet.normalize()
    assert wallet.into_list() == entries


# ---------------------------------------------------------------------------
# construction / unwrapping
# ---------------------------------------------------------------------------


def test_wallet_owns_a_copy_of_its_input() -> None:
    entries = [coin(1, "ETH"), coin(1, "ETH")]
    wallet = Wallet.from_coins(iter(entries))
    wallet.normalize()
    assert entries == [coin(1, "ETH"), coin(1, "ETH")]
    assert wallet.into_list() == [coin(2, "ETH")]


def test_into_list_reflects_non_canonical_form() -> None:
    wallet = Wallet([coin(1, "ETH"), coin(0, "BTC")])
    assert not wallet.is_canonical()
    unwrapped = wallet.into_list()
    assert unwrapped == [coin(1, "ETH"), coin(0, "BTC")]
    unwrapped.clear()
    assert len(wallet) == 2


def test_wallet_str_joins_coins() -> None:
    assert str(_base()) == "555BTC,12345ETH"
    assert str(Wallet()) == ""
