"""
Market snapshot runner for the OANDA v20 adapter.

    [1] INIT: Load config, setup logger
    [2] ADAPTER: Build the adapter from the ``exchange`` config section
    [3] SNAPSHOT: Account, ticker and candles in one batch, then pace once
    [4] EXPORT: Optionally write the candles to CSV

Usage::

    oanda-snapshot --config config/oanda.json --stock BTC.WEEK/USD --period M15
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from oandav20.core.models import Account, Record, Ticker
from oandav20.exchanges.oanda_v20 import OandaV20Adapter
from oandav20.helpers.config_helper import load_config, load_option
from oandav20.helpers.data_helper import save_records_to_csv
from oandav20.utils.logger import TradeLogger, setup_logger


@dataclass
class Snapshot:
    account: Optional[Account] = None
    ticker: Optional[Ticker] = None
    records: list[Record] = field(default_factory=list)
    csv_path: Optional[Path] = None


def init(config_path: Path) -> tuple[dict, logging.Logger]:
    """Stage 1: load configuration and setup the rotating logger."""
    config = load_config(config_path)
    log_path = Path(config.get("log_path", "logs/oanda_v20.log"))
    log_level = getattr(logging, config.get("log_level", "INFO").upper(), logging.INFO)
    logger = setup_logger("oanda_v20", log_path, level=log_level)
    logger.info(f"Config loaded from: {config_path}")
    return config, logger


def build_adapter(config: dict, logger: logging.Logger, **kwargs) -> OandaV20Adapter:
    """Stage 2: adapter whose trade journal writes to *logger*."""
    option = load_option(config)
    journal = TradeLogger(option.trader_id, option.type, logger=logger)
    adapter = OandaV20Adapter(option, journal=journal, **kwargs)
    logger.info(f"Adapter ready: {adapter.get_name()} ({adapter.get_type()}), limit={option.limit}/s")
    return adapter


def run_snapshot(
    adapter: OandaV20Adapter,
    stock_type: str,
    period: str,
    logger: logging.Logger,
    size: Optional[int] = None,
    output_dir: Optional[Path] = None,
) -> Snapshot:
    """Stages 3 & 4. Failed calls are already journaled; their fields stay empty."""
    snapshot = Snapshot()

    account = adapter.get_account()
    if account:
        snapshot.account = account.value
        logger.info(f"Account: {account.value.as_dict()}")

    ticker = adapter.get_ticker(stock_type)
    if ticker:
        snapshot.ticker = ticker.value
        logger.info(f"[{stock_type}] bid={ticker.value.buy} ask={ticker.value.sell} mid={ticker.value.mid}")

    records = adapter.get_records(stock_type, period, size)
    if records:
        snapshot.records = records.value
        logger.info(f"[{stock_type}] {len(records.value)} {period} records cached")

    slept = adapter.auto_sleep()
    if slept > 0:
        logger.debug(f"Paced for {slept:.3f}s")

    if output_dir is not None and snapshot.records:
        name = stock_type.replace("/", "_").replace(".", "_")
        snapshot.csv_path = Path(output_dir) / f"records_{name}_{period}.csv"
        save_records_to_csv(snapshot.records, str(snapshot.csv_path))
        logger.info(f"Records written to {snapshot.csv_path}")

    return snapshot


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Fetch an OANDA v20 market snapshot.")
    parser.add_argument("--config", required=True, type=Path)
    parser.add_argument("--stock", default="BTC.WEEK/USD")
    parser.add_argument("--period", default="M15")
    parser.add_argument("--size", type=int, default=None)
    parser.add_argument("--output-dir", type=Path, default=None)
    args = parser.parse_args(argv)

    config, logger = init(args.config)
    adapter = build_adapter(config, logger)
    snapshot = run_snapshot(
        adapter, args.stock, args.period, logger,
        size=args.size, output_dir=args.output_dir,
    )
    return 0 if snapshot.ticker is not None and snapshot.records else 1


if __name__ == "__main__":
    raise SystemExit(main())
