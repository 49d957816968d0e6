from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from oandav20.core.constants import TradeType
from oandav20.core.models import Account, Order, Position, Record, Ticker
from oandav20.core.result import Result


class ExchangeAdapter(ABC):

    # Identity & pacing
    @abstractmethod
    def get_type(self) -> str:
        pass

    @abstractmethod
    def get_name(self) -> str:
        pass

    @abstractmethod
    def log(self, *msgs: Any) -> None:
        pass

    @abstractmethod
    def set_limit(self, calls_per_second: Any) -> float:
        pass

    @abstractmethod
    def auto_sleep(self) -> float:
        pass

    @abstractmethod
    def get_min_amount(self, stock_type: str) -> float:
        pass

    # Account Methods
    @abstractmethod
    def get_account(self) -> Result[Account]:
        pass

    @abstractmethod
    def get_positions(self, stock_type: str) -> Result[list[Position]]:
        pass

    # Trading Methods
    @abstractmethod
    def trade(
        self,
        trade_type: Union[TradeType, str],
        stock_type: str,
        price: Any,
        amount: Any,
        params: Any,
    ) -> Result[str]:
        pass

    @abstractmethod
    def get_order(self, stock_type: str, order_id: str) -> Result[Order]:
        pass

    @abstractmethod
    def get_orders(self, stock_type: str) -> Result[list[Order]]:
        pass

    @abstractmethod
    def get_trades(self, stock_type: str) -> Result[list[Order]]:
        pass

    @abstractmethod
    def cancel_order(self, order: Order) -> Result[bool]:
        pass

    # Market Data Methods
    @abstractmethod
    def get_ticker(self, stock_type: str, size: Optional[int] = None) -> Result[Ticker]:
        pass

    @abstractmethod
    def get_records(self, stock_type: str, period: str, size: Optional[int] = None) -> Result[list[Record]]:
        pass
