"""
Static translation tables between framework vocabulary and OANDA codes.

Every table is closed: ``parse_*`` raises ``ValidationError`` for anything
it does not list, so an invalid argument never reaches the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from oandav20.core.constants import Severity, TradeType
from oandav20.core.errors import ValidationError
from oandav20.helpers.convert import to_str


# ---------------------------------------------------------------------------
# Instruments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InstrumentSpec:
    symbol: str          # broker symbol, e.g. "btc_usd"
    contract_type: str   # broker tenor code, e.g. "this_week"


INSTRUMENTS: dict[str, InstrumentSpec] = {
    "BTC.WEEK/USD":   InstrumentSpec("btc_usd", "this_week"),
    "BTC.WEEK2/USD":  InstrumentSpec("btc_usd", "next_week"),
    "BTC.MONTH3/USD": InstrumentSpec("btc_usd", "quarter"),
    "LTC.WEEK/USD":   InstrumentSpec("ltc_usd", "this_week"),
    "LTC.WEEK2/USD":  InstrumentSpec("ltc_usd", "next_week"),
    "LTC.MONTH3/USD": InstrumentSpec("ltc_usd", "quarter"),
}

# Broker tenor code -> display tenor used inside instrument names.
CONTRACT_TENORS: dict[str, str] = {
    "this_week": "WEEK",
    "next_week": "WEEK2",
    "quarter":   "MONTH3",
}

# Smallest order size, in contracts.
MIN_AMOUNTS: dict[str, float] = {
    "BTC.WEEK/USD":   1.0,
    "BTC.WEEK2/USD":  1.0,
    "BTC.MONTH3/USD": 1.0,
    "LTC.WEEK/USD":   1.0,
    "LTC.WEEK2/USD":  1.0,
    "LTC.MONTH3/USD": 1.0,
}


# ---------------------------------------------------------------------------
# Trade directions
# ---------------------------------------------------------------------------

TRADE_TYPE_CODES: dict[TradeType, str] = {
    TradeType.LONG:        "1",
    TradeType.SHORT:       "2",
    TradeType.LONG_CLOSE:  "3",
    TradeType.SHORT_CLOSE: "4",
}

TRADE_TYPES_BY_CODE: dict[int, TradeType] = {
    int(code): trade_type for trade_type, code in TRADE_TYPE_CODES.items()
}

TRADE_TYPE_SEVERITIES: dict[TradeType, Severity] = {
    TradeType.LONG:        Severity.LONG,
    TradeType.SHORT:       Severity.SHORT,
    TradeType.LONG_CLOSE:  Severity.LONGCLOSE,
    TradeType.SHORT_CLOSE: Severity.SHORTCLOSE,
}


# ---------------------------------------------------------------------------
# Leverage tiers and candle periods
# ---------------------------------------------------------------------------

class Leverage(Enum):
    X10 = "10"
    X20 = "20"


class Period(Enum):
    M = "M"
    M3 = "M3"
    M5 = "M5"
    M15 = "M15"
    M30 = "M30"
    H = "H"
    H2 = "H2"
    H4 = "H4"
    H6 = "H6"
    H12 = "H12"
    D = "D"
    D3 = "D3"
    W = "W"


PERIOD_CODES: dict[Period, str] = {
    Period.M:   "1min",
    Period.M3:  "3min",
    Period.M5:  "5min",
    Period.M15: "15min",
    Period.M30: "30min",
    Period.H:   "1hour",
    Period.H2:  "2hour",
    Period.H4:  "4hour",
    Period.H6:  "6hour",
    Period.H12: "12hour",
    Period.D:   "1day",
    Period.D3:  "3day",
    Period.W:   "1week",
}


# ---------------------------------------------------------------------------
# Trade parameters
# ---------------------------------------------------------------------------

@dataclass
class TradeParams:
    """Leverage tier plus free-form annotations written to the trade journal."""
    leverage: Leverage
    annotations: list[Any] = field(default_factory=list)

    @classmethod
    def from_args(cls, *args: Any) -> "TradeParams":
        """Build from the framework's trailing ``(leverage, *annotations)`` arguments."""
        if not args:
            raise ValidationError("unrecognized leverage")
        return cls(leverage=parse_leverage(args[0]), annotations=list(args[1:]))


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def parse_instrument(stock_type: str) -> tuple[str, InstrumentSpec]:
    """Return the normalised instrument name and its broker spec."""
    name = str(stock_type or "").upper()
    spec = INSTRUMENTS.get(name)
    if spec is None:
        raise ValidationError(f"unrecognized stockType: {name}")
    return name, spec


def parse_trade_type(trade_type: Union[TradeType, str]) -> TradeType:
    if isinstance(trade_type, TradeType):
        return trade_type
    try:
        return TradeType(str(trade_type or "").upper())
    except ValueError:
        raise ValidationError(f"unrecognized tradeType: {trade_type}") from None


def parse_leverage(leverage: Union[Leverage, int, str]) -> Leverage:
    if isinstance(leverage, Leverage):
        return leverage
    try:
        return Leverage(to_str(leverage))
    except ValueError:
        raise ValidationError(f"unrecognized leverage: {leverage}") from None


def parse_period(period: Union[Period, str]) -> Period:
    if isinstance(period, Period):
        return period
    try:
        return Period(str(period or "").upper())
    except ValueError:
        raise ValidationError(f"unrecognized period: {period}") from None


def parse_oanda_instrument(stock_type: str) -> tuple[str, str]:
    """
    Normalise an OANDA pair for the positions endpoint.

    ``"eur/usd"`` -> ``("EUR/USD", "EUR_USD")``.
    """
    raw = str(stock_type or "").upper()
    instrument = raw.replace("/", "_")
    base, _, quote = instrument.partition("_")
    if not base or not quote:
        raise ValidationError(f"unrecognized stockType: {instrument}")
    return raw, instrument


def contract_tenor(stock_type: str) -> str:
    """Display tenor of a futures instrument, ``""`` for anything else."""
    spec = INSTRUMENTS.get(str(stock_type or "").upper())
    if spec is None:
        return ""
    return CONTRACT_TENORS[spec.contract_type]
