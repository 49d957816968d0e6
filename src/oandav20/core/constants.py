"""Framework vocabulary shared by every exchange adapter."""

import logging
from enum import Enum


class TradeType(Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    LONG_CLOSE = "LONG_CLOSE"
    SHORT_CLOSE = "SHORT_CLOSE"


class Severity(Enum):
    """Trade-journal severities and the logging level each one is emitted at."""

    INFO = ("INFO", logging.INFO)
    ERROR = ("ERROR", logging.ERROR)
    LONG = ("LONG", logging.INFO)
    SHORT = ("SHORT", logging.INFO)
    LONGCLOSE = ("LONGCLOSE", logging.INFO)
    SHORTCLOSE = ("SHORTCLOSE", logging.INFO)
    CANCEL = ("CANCEL", logging.INFO)

    def __init__(self, label: str, level: int) -> None:
        self.label = label
        self.level = level
