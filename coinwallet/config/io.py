from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from coinwallet.config.models import (
    ProgramConfig,
    balances_to_raw,
    parse_balances,
    parse_program_config,
)
from coinwallet.core.wallet import Wallet

_config_logger = logging.getLogger("coinwallet.config")


def load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML file must parse to a mapping: {path}")
    return data


def write_yaml(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)


def load_program_config(path: Path) -> ProgramConfig:
    raw = load_yaml(path)
    try:
        config = parse_program_config(raw)
    except ValueError as exc:
        _config_logger.error("rejected program config %s: %s", path, exc)
        raise ValueError(f"{exc} ({path})") from exc
    if config.app_log_level_was_missing:
        app = raw.get("app")
        if isinstance(app, dict):
            app["log_level"] = config.app_log_level
            write_yaml(path, raw)
            _config_logger.warning(
                "program config missing app.log_level; wrote default %s to %s",
                config.app_log_level,
                path,
            )
    return config


def load_balances(
    path: Path,
    *,
    normalize: bool = True,
    max_entries: int = 0,
) -> Wallet:
    raw = load_yaml(path)
    try:
        wallet = parse_balances(raw)
    except ValueError as exc:
        _config_logger.error("rejected balances file %s: %s", path, exc)
        raise ValueError(f"{exc} ({path})") from exc
    if normalize:
        wallet.normalize()
    if max_entries > 0 and len(wallet) > max_entries:
        message = f"balances file {path} has {len(wallet)} entries, limit is {max_entries}"
        _config_logger.error(message)
        raise ValueError(message)
    return wallet


def load_balances_for_program(path: Path, program: ProgramConfig) -> Wallet:
    return load_balances(
        path,
        normalize=program.wallet_normalize_on_load,
        max_entries=program.wallet_max_entries,
    )


def write_balances(path: Path, wallet: Wallet) -> None:
    write_yaml(path, balances_to_raw(wallet))
