"""
OANDA v20 exchange adapter.

Account and position data come from the v20 REST API; order placement,
order queries, cancellation, depth and candles go through the legacy
query-string futures endpoints on the same host.

Every public method is a terminal boundary: inputs are validated against
the type maps before any request is made, failures are written to the trade
journal at ERROR severity, and the caller always receives a ``Result``.

Usage::

    adapter = OandaV20Adapter(load_option("config/oanda.json"))

    ticker = adapter.get_ticker("BTC.WEEK/USD")
    records = adapter.get_records("BTC.WEEK/USD", "M15", size=100)
    adapter.auto_sleep()

    order_id = adapter.trade("LONG", "BTC.WEEK/USD", 6500, 2, TradeParams(Leverage.X10))
    if order_id:
        print(order_id.value)
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Union

import requests

from oandav20.core.constants import Severity, TradeType
from oandav20.core.errors import (
    AdapterError,
    DataError,
    ProtocolError,
    ValidationError,
)
from oandav20.core.models import Account, Option, Order, OrderBook, Position, Record, Ticker
from oandav20.core.result import Result
from oandav20.exchanges.base import ExchangeAdapter
from oandav20.exchanges.oanda_types import (
    MIN_AMOUNTS,
    PERIOD_CODES,
    TRADE_TYPE_CODES,
    TRADE_TYPE_SEVERITIES,
    TRADE_TYPES_BY_CODE,
    TradeParams,
    contract_tenor,
    parse_instrument,
    parse_oanda_instrument,
    parse_period,
    parse_trade_type,
)
from oandav20.exchanges.rate_limiter import RateLimiter
from oandav20.exchanges.record_cache import RecordCache, parse_kline_rows
from oandav20.exchanges.rest_client import ApiResponse, RestClient
from oandav20.helpers.convert import positive_int, to_float, to_int, to_str
from oandav20.utils.logger import TradeLogger

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
_ACCOUNT_SUMMARY_PATH = "/v3/accounts/{account}/summary"
_POSITIONS_PATH = "/v3/accounts/{account}/positions/{instrument}"
_TRADE_PATH = "/api/v1/future_trade.do"
_ORDER_INFO_PATH = "/api/v1/future_orders_info.do"
_ORDER_LIST_PATH = "/api/v1/future_order_info.do"
_CANCEL_PATH = "/api/v1/future_cancel.do"
_DEPTH_PATH = "/api/v1/future_depth.do"
_KLINE_PATH = "/api/v1/future_kline.do"

_NO_SUCH_POSITION = "NO_SUCH_POSITION"

_ORDER_STATUS_UNFILLED = "1"
_ORDER_STATUS_FILLED = "2"
_ORDER_PAGE_LENGTH = 50

DEFAULT_DEPTH_SIZE = 20
DEFAULT_RECORDS_SIZE = 200


def _get_path(data: Any, *keys: str) -> Any:
    """Walk nested dicts; ``None`` as soon as a key or level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class OandaV20Adapter(ExchangeAdapter):
    """
    Parameters
    ----------
    option : Option
        Credentials, identity tags, host, timeout and initial call ceiling.
    session : requests.Session, optional
        HTTP session shared by every call (useful for testing).
    journal : TradeLogger, optional
        Trade journal; one is built from ``option`` when omitted.
    clock, sleep : callable, optional
        Time sources of the rate limiter.
    """

    def __init__(
        self,
        option: Option,
        session: Optional[requests.Session] = None,
        journal: Optional[TradeLogger] = None,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.option = option
        self.journal = journal or TradeLogger(option.trader_id, option.type)
        self.rate_limiter = RateLimiter(option.limit, clock=clock, sleep=sleep)
        self.client = RestClient(
            option.host,
            option.secret_key,
            self.rate_limiter,
            session=session,
            timeout=option.timeout,
        )
        self.records = RecordCache()

    # ------------------------------------------------------------------
    # Identity & pacing
    # ------------------------------------------------------------------

    def get_type(self) -> str:
        return self.option.type

    def get_name(self) -> str:
        return self.option.name

    def log(self, *msgs: Any) -> None:
        self.journal.log(Severity.INFO, "", 0.0, 0.0, *msgs)

    def set_limit(self, calls_per_second: Any) -> float:
        """Set the call ceiling; an invalid value is logged and the old one kept."""
        try:
            return self.rate_limiter.set_limit(calls_per_second)
        except ValidationError as exc:
            self._fail("set_limit", exc)
            return self.rate_limiter.limit

    def auto_sleep(self) -> float:
        return self.rate_limiter.auto_sleep()

    def get_min_amount(self, stock_type: str) -> float:
        return MIN_AMOUNTS.get(str(stock_type or "").upper(), 0.0)

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    def get_account(self) -> Result[Account]:
        try:
            response = self.client.request_auth_json(
                "GET", _ACCOUNT_SUMMARY_PATH.format(account=self.option.access_key)
            )
            self._check_status(response)
            currency = _get_path(response.data, "account", "currency")
            if not currency:
                raise DataError("can not get the currency")
            return Result.success(Account(
                currency=str(currency),
                balance=to_float(_get_path(response.data, "account", "marginAvailable")),
            ))
        except AdapterError as exc:
            return self._fail("get_account", exc)

    def get_positions(self, stock_type: str) -> Result[list[Position]]:
        """Open long and short positions on an OANDA pair such as ``EUR/USD``."""
        try:
            stock_type, instrument = parse_oanda_instrument(stock_type)
            response = self.client.request_auth_json(
                "GET",
                _POSITIONS_PATH.format(account=self.option.access_key, instrument=instrument),
            )
            if not response.is_success and _get_path(response.data, "errorCode") == _NO_SUCH_POSITION:
                return Result.success([])
            self._check_status(response)

            positions = []
            for side, trade_type in (("long", TradeType.LONG), ("short", TradeType.SHORT)):
                side_json = _get_path(response.data, "position", side) or {}
                amount = abs(to_float(side_json.get("units")))
                if amount > 0.0:
                    positions.append(Position(
                        price=to_float(side_json.get("averagePrice")),
                        leverage=1,
                        amount=amount,
                        confirm_amount=amount,
                        frozen_amount=0.0,
                        profit=to_float(side_json.get("resettablePL")),
                        contract_type=contract_tenor(stock_type),
                        trade_type=trade_type,
                        stock_type=stock_type,
                    ))
            return Result.success(positions)
        except AdapterError as exc:
            return self._fail("get_positions", exc)

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def trade(
        self,
        trade_type: Union[TradeType, str],
        stock_type: str,
        price: Any,
        amount: Any,
        params: Any,
    ) -> Result[str]:
        """
        Place an order and return its broker id.

        ``price <= 0`` places a market order. ``params`` is a ``TradeParams``
        or the framework's ``(leverage, *annotations)`` sequence.
        """
        try:
            trade_type = parse_trade_type(trade_type)
            stock_type, spec = parse_instrument(stock_type)
            params = self._trade_params(params)
            try:
                price = to_float(price, strict=True)
                amount = to_float(amount, strict=True)
            except ValueError as exc:
                raise ValidationError(str(exc)) from None
            if amount <= 0.0:
                raise ValidationError(f"unrecognized amount: {amount}")

            match_price = "0"
            if price <= 0.0:
                price = 0.0
                match_price = "1"
            query = {
                "symbol": spec.symbol,
                "contract_type": spec.contract_type,
                "price": f"{price:f}",
                "amount": f"{amount:f}",
                "type": TRADE_TYPE_CODES[trade_type],
                "match_price": match_price,
                "lever_rate": params.leverage.value,
            }
            data = self._check_result(self.client.request_auth_json("GET", _TRADE_PATH, params=query))
            order_id = to_str(data.get("order_id"))
            if not order_id:
                raise DataError("can not get the order_id")

            self.journal.log(TRADE_TYPE_SEVERITIES[trade_type], stock_type, price, amount, *params.annotations)
            return Result.success(order_id)
        except AdapterError as exc:
            return self._fail("trade", exc)

    def get_order(self, stock_type: str, order_id: str) -> Result[Order]:
        try:
            stock_type, spec = parse_instrument(stock_type)
            order_id = to_str(order_id)
            if not order_id:
                raise ValidationError("unrecognized order id")
            query = {
                "symbol": spec.symbol,
                "contract_type": spec.contract_type,
                "order_id": order_id,
            }
            data = self._check_result(self.client.request_auth_json("GET", _ORDER_INFO_PATH, params=query))
            orders = data.get("orders") or []
            if not orders:
                raise DataError(f"order {order_id} not found")
            return Result.success(self._parse_order(orders[0], stock_type))
        except AdapterError as exc:
            return self._fail("get_order", exc)

    def get_orders(self, stock_type: str) -> Result[list[Order]]:
        """Unfilled orders, first page."""
        return self._list_orders("get_orders", stock_type, _ORDER_STATUS_UNFILLED)

    def get_trades(self, stock_type: str) -> Result[list[Order]]:
        """Recently filled orders, first page."""
        return self._list_orders("get_trades", stock_type, _ORDER_STATUS_FILLED)

    def cancel_order(self, order: Order) -> Result[bool]:
        try:
            stock_type, spec = parse_instrument(order.stock_type)
            if not order.id:
                raise ValidationError("unrecognized order id")
            query = {
                "symbol": spec.symbol,
                "order_id": order.id,
                "contract_type": spec.contract_type,
            }
            self._check_result(self.client.request_auth_json("GET", _CANCEL_PATH, params=query))
            self.journal.log(Severity.CANCEL, stock_type, order.price, order.amount - order.deal_amount, order)
            return Result.success(True)
        except AdapterError as exc:
            return self._fail("cancel_order", exc)

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    def get_ticker(self, stock_type: str, size: Optional[int] = None) -> Result[Ticker]:
        """Depth snapshot with ``size`` levels per side (default 20)."""
        try:
            stock_type, spec = parse_instrument(stock_type)
            depth = positive_int(size, DEFAULT_DEPTH_SIZE)
            if depth is None:
                raise ValidationError(f"unrecognized size: {size}")
            data = self.client.get_public_json(_DEPTH_PATH, params={
                "symbol": spec.symbol,
                "contract_type": spec.contract_type,
                "size": depth,
            })
            self._check_public_error(data)

            bids = [self._book_entry(entry) for entry in _get_path(data, "bids") or []]
            # asks arrive farthest-first
            asks = [self._book_entry(entry) for entry in reversed(_get_path(data, "asks") or [])]
            return Result.success(Ticker.from_book(bids, asks))
        except AdapterError as exc:
            return self._fail("get_ticker", exc)

    def get_records(self, stock_type: str, period: str, size: Optional[int] = None) -> Result[list[Record]]:
        """
        Candles for ``period`` merged into the local cache; returns the whole
        cached series, ascending, at most ``size`` bars (default 200).
        """
        try:
            stock_type, spec = parse_instrument(stock_type)
            period = parse_period(period)
            window = positive_int(size, DEFAULT_RECORDS_SIZE)
            if window is None:
                raise ValidationError(f"unrecognized size: {size}")
            data = self.client.get_public_json(_KLINE_PATH, params={
                "symbol": spec.symbol,
                "contract_type": spec.contract_type,
                "type": PERIOD_CODES[period],
                "size": window,
            })
            self._check_public_error(data)
            if not isinstance(data, list):
                raise DataError(f"unexpected kline payload: {data!r}")

            fetched = parse_kline_rows(data)
            return Result.success(self.records.merge((stock_type, period), fetched, window))
        except AdapterError as exc:
            return self._fail("get_records", exc)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _fail(self, operation: str, exc: AdapterError) -> Result:
        self.journal.log(Severity.ERROR, "", 0.0, 0.0, f"{operation}() error, ", exc.message)
        return Result.failure(exc)

    def _list_orders(self, operation: str, stock_type: str, status: str) -> Result[list[Order]]:
        try:
            stock_type, spec = parse_instrument(stock_type)
            query = {
                "symbol": spec.symbol,
                "contract_type": spec.contract_type,
                "status": status,
                "order_id": "-1",
                "current_page": "1",
                "page_length": str(_ORDER_PAGE_LENGTH),
            }
            data = self._check_result(self.client.request_auth_json("GET", _ORDER_LIST_PATH, params=query))
            return Result.success([
                self._parse_order(order_json, stock_type)
                for order_json in data.get("orders") or []
            ])
        except AdapterError as exc:
            return self._fail(operation, exc)

    @staticmethod
    def _trade_params(params: Any) -> TradeParams:
        if isinstance(params, TradeParams):
            return params
        if params is None:
            raise ValidationError("unrecognized leverage")
        if isinstance(params, (list, tuple)):
            return TradeParams.from_args(*params)
        return TradeParams.from_args(params)

    @staticmethod
    def _check_status(response: ApiResponse) -> None:
        """v20 endpoints: any non-2xx status is a failure described by the body."""
        if response.is_success:
            return
        raise ProtocolError(
            str(_get_path(response.data, "errorMessage") or f"HTTP status {response.status_code}"),
            status_code=response.status_code,
            error_code=_get_path(response.data, "errorCode"),
        )

    @staticmethod
    def _check_result(response: ApiResponse) -> dict:
        """Legacy endpoints: 2xx status and ``"result": true`` in the body."""
        data = response.data if isinstance(response.data, dict) else {}
        if not response.is_success or data.get("result") is not True:
            error_code = to_str(data.get("error_code"))
            raise ProtocolError(
                f"the error number is {error_code or response.status_code}",
                status_code=response.status_code,
                error_code=error_code or None,
            )
        return data

    @staticmethod
    def _check_public_error(data: Any) -> None:
        error_code = _get_path(data, "error_code")
        if error_code is not None:
            raise ProtocolError(
                f"the error number is {to_str(error_code)}",
                error_code=to_str(error_code),
            )

    @staticmethod
    def _book_entry(entry: Any) -> OrderBook:
        if not isinstance(entry, (list, tuple)) or len(entry) < 2:
            raise DataError(f"malformed depth entry: {entry!r}")
        return OrderBook(price=to_float(entry[0]), amount=to_float(entry[1]))

    @staticmethod
    def _parse_order(order_json: Any, stock_type: str) -> Order:
        if not isinstance(order_json, dict):
            raise DataError(f"malformed order: {order_json!r}")
        return Order(
            id=to_str(order_json.get("order_id")),
            price=to_float(order_json.get("price")),
            amount=to_float(order_json.get("amount")),
            deal_amount=to_float(order_json.get("deal_amount")),
            fee=to_float(order_json.get("fee")),
            trade_type=TRADE_TYPES_BY_CODE.get(to_int(order_json.get("type"), default=-1)),
            stock_type=stock_type,
        )
