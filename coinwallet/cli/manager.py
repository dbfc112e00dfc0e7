from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from concurrent_log_handler import ConcurrentRotatingFileHandler

from coinwallet.config.io import (
    load_balances,
    load_balances_for_program,
    load_program_config,
    write_balances,
)
from coinwallet.config.models import ProgramConfig
from coinwallet.core.coin import Coin
from coinwallet.core.errors import AmountOverflowError, UnderflowError
from coinwallet.core.wallet import Wallet
from coinwallet.logging_setup import (
    apply_level_to_root,
    coerce_log_level,
    create_rotating_file_handler,
)

_MANAGER_SERVICE_NAME = "manager"
_manager_file_logger_initialized = False
_manager_file_log_handler: ConcurrentRotatingFileHandler | None = None
_manager_logger = logging.getLogger("coinwallet.manager")


def _default_program_config_path() -> str:
    home_default = Path("~/.coinwallet/config/program.yaml").expanduser()
    if home_default.exists():
        return str(home_default)
    return "config/program.yaml"


def _default_balances_path() -> str:
    home_default = Path("~/.coinwallet/config/balances.yaml").expanduser()
    if home_default.exists():
        return str(home_default)
    return "config/balances.yaml"


def _initialize_manager_file_logging(home_dir: str, *, log_level: str | None) -> None:
    global _manager_file_logger_initialized, _manager_file_log_handler
    if not _manager_file_logger_initialized:
        handler = create_rotating_file_handler(service_name=_MANAGER_SERVICE_NAME, home_dir=home_dir)
        logging.getLogger().addHandler(handler)
        _manager_file_log_handler = handler
        _manager_file_logger_initialized = True
    apply_level_to_root(
        effective_level=coerce_log_level(log_level),
        logger=_manager_logger,
        handler=_manager_file_log_handler,
    )


def _load(program_path: Path, balances_path: Path) -> tuple[ProgramConfig, Wallet]:
    program = load_program_config(program_path)
    _initialize_manager_file_logging(program.home_dir, log_level=program.app_log_level)
    wallet = load_balances_for_program(balances_path, program)
    return program, wallet


def _wallet_payload(wallet: Wallet) -> dict:
    return {
        "balances": [{"denom": c.denom, "amount": c.amount} for c in wallet],
        "canonical": wallet.is_canonical(),
    }


def _validate(program_path: Path, balances_path: Path) -> int:
    _load(program_path, balances_path)
    print("config validation ok")
    return 0


def _balances(program_path: Path, balances_path: Path) -> int:
    _, wallet = _load(program_path, balances_path)
    print(json.dumps(_wallet_payload(wallet)))
    return 0


def _has(*, program_path: Path, balances_path: Path, denom: str, amount: int) -> int:
    required = _requested_coin(denom, amount)
    if required is None:
        return 2
    _, wallet = _load(program_path, balances_path)
    print(json.dumps({"denom": denom, "amount": amount, "has": wallet.has(required)}))
    return 0


def _requested_coin(denom: str, amount: int) -> Coin | None:
    try:
        return Coin(denom=denom, amount=amount)
    except ValueError as exc:
        _manager_logger.warning("rejected requested amount denom=%s amount=%d: %s", denom, amount, exc)
        print(json.dumps({"error": "invalid_amount", "denom": denom, "requested": amount}))
        return None


def _finish(wallet: Wallet, *, program: ProgramConfig, balances_path: Path, write: bool) -> int:
    if write:
        limit = program.wallet_max_entries
        if 0 < limit < len(wallet):
            _manager_logger.warning(
                "refusing to write %d balance entries to %s, limit is %d",
                len(wallet),
                balances_path,
                limit,
            )
            print(json.dumps({"error": "max_entries_exceeded", "entries": len(wallet), "limit": limit}))
            return 2
        write_balances(balances_path, wallet)
        _manager_logger.info("wrote %d balance entries to %s", len(wallet), balances_path)
    print(json.dumps(_wallet_payload(wallet)))
    return 0


def _add(*, program_path: Path, balances_path: Path, denom: str, amount: int, write: bool) -> int:
    requested = _requested_coin(denom, amount)
    if requested is None:
        return 2
    program, wallet = _load(program_path, balances_path)
    try:
        wallet.add(requested)
    except AmountOverflowError as exc:
        _manager_logger.warning("add rejected denom=%s amount=%d: %s", denom, amount, exc)
        print(json.dumps({"error": "overflow", "denom": denom, "requested": amount}))
        return 2
    return _finish(wallet, program=program, balances_path=balances_path, write=write)


def _subtract(*, program_path: Path, balances_path: Path, denom: str, amount: int, write: bool) -> int:
    requested = _requested_coin(denom, amount)
    if requested is None:
        return 2
    program, wallet = _load(program_path, balances_path)
    try:
        remaining = wallet.subtract(requested)
    except UnderflowError as exc:
        _manager_logger.warning("subtract rejected denom=%s: %s", denom, exc)
        print(
            json.dumps(
                {
                    "error": "underflow",
                    "denom": denom,
                    "held": exc.minuend,
                    "requested": exc.requested,
                }
            )
        )
        return 2
    return _finish(remaining, program=program, balances_path=balances_path, write=write)


def _merge(*, program_path: Path, balances_path: Path, from_path: Path, write: bool) -> int:
    program, wallet = _load(program_path, balances_path)
    other = load_balances(from_path, normalize=False)
    try:
        wallet.merge(other)
    except AmountOverflowError as exc:
        _manager_logger.warning("merge rejected from=%s: %s", from_path, exc)
        print(json.dumps({"error": "overflow", "from": str(from_path)}))
        return 2
    return _finish(wallet, program=program, balances_path=balances_path, write=write)


def _normalize(*, program_path: Path, balances_path: Path, write: bool) -> int:
    program = load_program_config(program_path)
    _initialize_manager_file_logging(program.home_dir, log_level=program.app_log_level)
    wallet = load_balances(balances_path, normalize=False)
    wallet.normalize()
    return _finish(wallet, program=program, balances_path=balances_path, write=write)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    parser = argparse.ArgumentParser(description="coinwallet manager CLI")
    parser.add_argument("--program-config", default=_default_program_config_path())
    parser.add_argument("--balances", default=_default_balances_path())

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("config-validate")
    sub.add_parser("balances")

    p_has = sub.add_parser("has")
    p_has.add_argument("--denom", required=True)
    p_has.add_argument("--amount", required=True, type=int)

    p_add = sub.add_parser("add")
    p_add.add_argument("--denom", required=True)
    p_add.add_argument("--amount", required=True, type=int)
    p_add.add_argument("--write", action="store_true")

    p_subtract = sub.add_parser("subtract")
    p_subtract.add_argument("--denom", required=True)
    p_subtract.add_argument("--amount", required=True, type=int)
    p_subtract.add_argument("--write", action="store_true")

    p_merge = sub.add_parser("merge")
    p_merge.add_argument("--from", dest="from_path", required=True)
    p_merge.add_argument("--write", action="store_true")

    p_normalize = sub.add_parser("normalize")
    p_normalize.add_argument("--write", action="store_true")

    args = parser.parse_args()
    program_path = Path(args.program_config)
    balances_path = Path(args.balances)
    if args.command == "config-validate":
        code = _validate(program_path, balances_path)
    elif args.command == "balances":
        code = _balances(program_path, balances_path)
    elif args.command == "has":
        code = _has(
            program_path=program_path,
            balances_path=balances_path,
            denom=args.denom,
            amount=int(args.amount),
        )
    elif args.command == "add":
        code = _add(
            program_path=program_path,
            balances_path=balances_path,
            denom=args.denom,
            amount=int(args.amount),
            write=bool(args.write),
        )
    elif args.command == "subtract":
        code = _subtract(
            program_path=program_path,
            balances_path=balances_path,
            denom=args.denom,
            amount=int(args.amount),
            write=bool(args.write),
        )
    elif args.command == "merge":
        code = _merge(
            program_path=program_path,
            balances_path=balances_path,
            from_path=Path(args.from_path),
            write=bool(args.write),
        )
    elif args.command == "normalize":
        code = _normalize(
            program_path=program_path,
            balances_path=balances_path,
            write=bool(args.write),
        )
    else:
        raise ValueError(f"unsupported command: {args.command}")
    raise SystemExit(code)


if __name__ == "__main__":
    main()
