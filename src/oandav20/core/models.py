from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from oandav20.core.constants import TradeType
from oandav20.core.errors import DataError

DEFAULT_HOST = "https://api-fxtrade.oanda.com"


@dataclass(frozen=True)
class Option:
    """Read-only exchange configuration supplied at construction."""
    access_key: str          # OANDA account id
    secret_key: str          # bearer token
    trader_id: str = ""
    type: str = "oanda.v20"
    name: str = "oanda.v20"
    host: str = DEFAULT_HOST
    timeout: float = 10.0    # seconds, per HTTP request
    limit: float = 10.0      # calls per second


@dataclass
class Account:
    currency: str
    balance: float
    frozen_balance: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return {
            self.currency: self.balance,
            "Frozen" + self.currency: self.frozen_balance,
        }


@dataclass
class Position:
    price: float
    leverage: int
    amount: float
    confirm_amount: float
    frozen_amount: float
    profit: float
    contract_type: str
    trade_type: TradeType
    stock_type: str


@dataclass(frozen=True)
class Order:
    id: str                  # broker-assigned, opaque
    price: float
    amount: float
    deal_amount: float
    fee: float
    trade_type: Optional[TradeType]
    stock_type: str


@dataclass(frozen=True)
class OrderBook:
    price: float
    amount: float


@dataclass
class Ticker:
    """
    Depth snapshot. ``bids`` are best-first descending, ``asks`` best-first
    ascending; ``buy``/``sell`` are the best bid/ask.
    """
    buy: float
    sell: float
    mid: float
    bids: list[OrderBook] = field(default_factory=list)
    asks: list[OrderBook] = field(default_factory=list)

    @classmethod
    def from_book(cls, bids: list[OrderBook], asks: list[OrderBook]) -> "Ticker":
        if not bids or not asks:
            raise DataError("can not get enough Bids or Asks")
        buy = bids[0].price
        sell = asks[0].price
        return cls(buy=buy, sell=sell, mid=(buy + sell) / 2, bids=bids, asks=asks)


@dataclass(frozen=True)
class Record:
    time: int                # UTC unix seconds, bar open
    open: float
    high: float
    low: float
    close: float
    volume: float
