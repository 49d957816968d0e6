import io
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from datetime import datetime
from typing import Any, Optional

from oandav20.core.constants import Severity


class DotMsFormatter(logging.Formatter):
    def formatTime(self, record, datefmt=None):
        ct = datetime.fromtimestamp(record.created)
        if datefmt:
            s = ct.strftime(datefmt)
            ms = int(record.msecs)
            s = s.replace('%f', f'{ms:03d}')
        else:
            s = ct.strftime("%Y-%m-%d %H:%M:%S")
            s += f".{int(record.msecs):03d}"
        return s


def setup_logger(name: str, log_path: str | Path, level: int = logging.INFO) -> logging.Logger:
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    formatter = DotMsFormatter(
        '[%(asctime)s] %(levelname)s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S.%f'
    )

    # Console handler forced to UTF-8 so instrument names never raise on
    # consoles that default to a narrower codec.
    if hasattr(sys.stdout, "buffer"):
        utf8_stream = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    else:
        utf8_stream = sys.stdout
    ch = logging.StreamHandler(utf8_stream)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    fh = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(formatter)
    logger.addHandler(fh)

    return logger


class TradeLogger:
    """
    Trade journal of one trader on one exchange.

    Each entry carries a severity, the instrument, a price and an amount,
    followed by free-form message parts concatenated as given::

        [trader-1/oanda.v20] LONG BTC.WEEK/USD price=6500.0 amount=2.0 breakout entry
    """

    def __init__(
        self,
        trader_id: str = "",
        exchange_type: str = "",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.trader_id = trader_id
        self.exchange_type = exchange_type
        self.logger = logger or logging.getLogger(__name__)

    def log(
        self,
        severity: Severity,
        stock_type: str,
        price: float,
        amount: float,
        *msgs: Any,
    ) -> str:
        message = "".join(str(m) for m in msgs)
        parts = [f"[{self.trader_id}/{self.exchange_type}]", severity.label]
        if stock_type:
            parts.append(stock_type)
        if price or amount:
            parts.append(f"price={price} amount={amount}")
        if message:
            parts.append(message)
        line = " ".join(parts)
        self.logger.log(severity.level, line)
        return line
