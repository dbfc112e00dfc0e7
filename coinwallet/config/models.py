from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from coinwallet.core.amount import validate_amount
from coinwallet.core.coin import Coin
from coinwallet.core.wallet import Wallet
from coinwallet.logging_setup import DEFAULT_LOG_LEVEL_NAME, normalize_log_level_name


@dataclass(slots=True)
class ProgramConfig:
    home_dir: str
    app_log_level: str = DEFAULT_LOG_LEVEL_NAME
    app_log_level_was_missing: bool = False
    wallet_max_entries: int = 0
    wallet_normalize_on_load: bool = True


def _req(mapping: dict[str, Any], key: str) -> Any:
    if key not in mapping:
        raise ValueError(f"Missing required field: {key}")
    return mapping[key]


def parse_program_config(raw: dict[str, Any]) -> ProgramConfig:
    app = _req(raw, "app")
    if not isinstance(app, dict):
        raise ValueError("app must be a mapping")
    wallet = raw.get("wallet") or {}
    if not isinstance(wallet, dict):
        raise ValueError("wallet must be a mapping")

    home_dir = str(_req(app, "home_dir")).strip()
    if not home_dir:
        raise ValueError("app.home_dir must be non-empty")

    log_level_raw = app.get("log_level")
    log_level_was_missing = log_level_raw is None or not str(log_level_raw).strip()

    try:
        max_entries = int(wallet.get("max_entries", 0))
    except (TypeError, ValueError) as exc:
        raise ValueError("wallet.max_entries must be an integer") from exc
    if max_entries < 0:
        raise ValueError("wallet.max_entries must be >= 0")

    return ProgramConfig(
        home_dir=home_dir,
        app_log_level=normalize_log_level_name(log_level_raw),
        app_log_level_was_missing=log_level_was_missing,
        wallet_max_entries=max_entries,
        wallet_normalize_on_load=bool(wallet.get("normalize_on_load", True)),
    )


def parse_balance_row(row: Any) -> Coin:
    if not isinstance(row, dict):
        raise ValueError("balances entries must be mappings")
    denom = str(_req(row, "denom")).strip()
    if not denom:
        raise ValueError("balances entry denom must be non-empty")
    amount_raw = _req(row, "amount")
    if isinstance(amount_raw, str):
        digits = amount_raw.strip()
        if not (digits.isascii() and digits.isdigit()):
            raise ValueError(f"invalid amount for denom={denom}: expected a decimal string")
        amount_raw = int(digits)
    try:
        amount = validate_amount(amount_raw)
    except ValueError as exc:
        raise ValueError(f"invalid amount for denom={denom}: {exc}") from exc
    return Coin(denom=denom, amount=amount)


def parse_balances(raw: dict[str, Any]) -> Wallet:
    rows = raw.get("balances")
    if rows is None:
        rows = []
    if not isinstance(rows, list):
        raise ValueError("balances must be a list")
    return Wallet(coins=[parse_balance_row(row) for row in rows])


def balances_to_raw(wallet: Wallet) -> dict[str, Any]:
    # amounts round-trip as decimal strings
    return {"balances": [{"denom": c.denom, "amount": str(c.amount)} for c in wallet]}
