"""Tests for the OANDA v20 adapter surface.

Tests cover:
- Validation short-circuit for every operation (no request, no pacing cost)
- Account and position mapping, including NO_SUCH_POSITION
- Order placement, lookup, listing and cancellation
- Depth and candle endpoints, including the candle cache
- Pacing and identity helpers
"""

import logging

import pytest
import requests

from oandav20.core.constants import TradeType
from oandav20.core.errors import ErrorKind
from oandav20.core.models import Account, Order
from oandav20.exchanges.oanda_types import Leverage, TradeParams

HOST = "https://api-fxtrade.oanda.com"
ACCOUNT = "101-004-1234567-001"
BTC = "BTC.WEEK/USD"


def order_json(order_id=42, type_code=1, price=6500, amount=2, deal_amount=1, fee=-0.01):
    return {
        "order_id": order_id,
        "price": price,
        "amount": amount,
        "deal_amount": deal_amount,
        "fee": fee,
        "type": type_code,
    }


def kline(t_seconds, close):
    return [t_seconds * 1000, close, close, close, close, 10]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

BAD_ORDER = Order(id="1", price=1.0, amount=1.0, deal_amount=0.0, fee=0.0,
                  trade_type=TradeType.LONG, stock_type="XRP.WEEK/USD")

INVALID_CALLS = [
    pytest.param(lambda a: a.get_positions("EURUSD"), id="positions-no-separator"),
    pytest.param(lambda a: a.trade("BUY", BTC, 1, 1, TradeParams(Leverage.X10)), id="trade-direction"),
    pytest.param(lambda a: a.trade("LONG", "XRP.WEEK/USD", 1, 1, TradeParams(Leverage.X10)), id="trade-instrument"),
    pytest.param(lambda a: a.trade("LONG", BTC, 1, 1, ("50",)), id="trade-leverage"),
    pytest.param(lambda a: a.trade("LONG", BTC, 1, 1, None), id="trade-missing-leverage"),
    pytest.param(lambda a: a.trade("LONG", BTC, 1, 1, ()), id="trade-empty-args"),
    pytest.param(lambda a: a.trade("LONG", BTC, 1, 0, TradeParams(Leverage.X10)), id="trade-zero-amount"),
    pytest.param(lambda a: a.trade("LONG", BTC, "cheap", 1, TradeParams(Leverage.X10)), id="trade-bad-price"),
    pytest.param(lambda a: a.get_order("XRP.WEEK/USD", "1"), id="get-order-instrument"),
    pytest.param(lambda a: a.get_order(BTC, ""), id="get-order-id"),
    pytest.param(lambda a: a.get_orders("XRP.WEEK/USD"), id="get-orders"),
    pytest.param(lambda a: a.get_trades("XRP.WEEK/USD"), id="get-trades"),
    pytest.param(lambda a: a.cancel_order(BAD_ORDER), id="cancel-order"),
    pytest.param(lambda a: a.get_ticker("XRP.WEEK/USD"), id="ticker-instrument"),
    pytest.param(lambda a: a.get_ticker(BTC, 0), id="ticker-size"),
    pytest.param(lambda a: a.get_records("XRP.WEEK/USD", "M"), id="records-instrument"),
    pytest.param(lambda a: a.get_records(BTC, "M2"), id="records-period"),
    pytest.param(lambda a: a.get_records(BTC, "M", -5), id="records-size"),
]


class TestValidation:

    @pytest.mark.parametrize("call", INVALID_CALLS)
    def test_invalid_input_costs_nothing(self, adapter, session, call):
        result = call(adapter)

        assert not result.ok
        assert result.kind is ErrorKind.VALIDATION
        session.request.assert_not_called()
        session.get.assert_not_called()
        assert adapter.rate_limiter.calls == 0

    def test_failure_is_journaled_at_error(self, adapter, caplog):
        with caplog.at_level(logging.ERROR):
            adapter.get_orders("XRP.WEEK/USD")

        assert "get_orders() error, unrecognized stockType: XRP.WEEK/USD" in caplog.text
        assert caplog.records[-1].levelno == logging.ERROR


# ---------------------------------------------------------------------------
# Account & positions
# ---------------------------------------------------------------------------

class TestAccount:

    def test_balance_and_frozen_balance(self, adapter, session, make_response):
        session.request.return_value = make_response(
            200, {"account": {"currency": "USD", "marginAvailable": "1000.50"}}
        )

        result = adapter.get_account()

        assert result.ok
        assert result.value == Account(currency="USD", balance=1000.5)
        assert result.value.as_dict() == {"USD": 1000.5, "FrozenUSD": 0.0}
        assert session.request.call_args.args == ("GET", f"{HOST}/v3/accounts/{ACCOUNT}/summary")
        assert adapter.rate_limiter.calls == 1

    def test_missing_currency_is_data_error(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {"account": {"marginAvailable": "1"}})

        result = adapter.get_account()

        assert result.kind is ErrorKind.DATA

    def test_error_status_reports_broker_message(self, adapter, session, make_response):
        session.request.return_value = make_response(
            401, {"errorMessage": "Insufficient authorization to perform request."}
        )

        result = adapter.get_account()

        assert result.kind is ErrorKind.PROTOCOL
        assert result.message == "Insufficient authorization to perform request."
        assert result.error.status_code == 401

    def test_failed_call_still_counts(self, adapter, session):
        session.request.side_effect = requests.ConnectionError("refused")

        assert adapter.get_account().kind is ErrorKind.TRANSPORT
        assert adapter.get_account().kind is ErrorKind.TRANSPORT
        assert adapter.rate_limiter.calls == 2


class TestPositions:

    def test_only_non_empty_sides_are_returned(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {
            "position": {
                "instrument": "EUR_USD",
                "long": {"units": "0", "resettablePL": "0.0000"},
                "short": {"units": "-5", "averagePrice": "1.08512", "resettablePL": "-2.35"},
            }
        })

        result = adapter.get_positions("eur/usd")

        assert result.ok
        assert len(result.value) == 1
        position = result.value[0]
        assert position.trade_type is TradeType.SHORT
        assert position.amount == 5.0
        assert position.confirm_amount == 5.0
        assert position.frozen_amount == 0.0
        assert position.price == 1.08512
        assert position.profit == -2.35
        assert position.leverage == 1
        assert position.contract_type == ""
        assert position.stock_type == "EUR/USD"
        assert session.request.call_args.args == (
            "GET", f"{HOST}/v3/accounts/{ACCOUNT}/positions/EUR_USD"
        )

    def test_both_sides(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {
            "position": {
                "long": {"units": "100", "averagePrice": "1.1", "resettablePL": "3"},
                "short": {"units": "-40", "averagePrice": "1.2", "resettablePL": "-1"},
            }
        })

        result = adapter.get_positions("EUR/USD")

        assert [p.trade_type for p in result.value] == [TradeType.LONG, TradeType.SHORT]
        assert [p.amount for p in result.value] == [100.0, 40.0]

    def test_no_such_position_is_an_empty_list(self, adapter, session, make_response):
        session.request.return_value = make_response(404, {
            "errorCode": "NO_SUCH_POSITION",
            "errorMessage": "The requested position does not exist",
        })

        result = adapter.get_positions("EUR/USD")

        assert result.ok
        assert result.value == []

    def test_other_errors_fail(self, adapter, session, make_response):
        session.request.return_value = make_response(400, {
            "errorCode": "INVALID_INSTRUMENT",
            "errorMessage": "Invalid instrument",
        })

        result = adapter.get_positions("EUR/USD")

        assert result.kind is ErrorKind.PROTOCOL
        assert result.error.error_code == "INVALID_INSTRUMENT"


# ---------------------------------------------------------------------------
# Trading
# ---------------------------------------------------------------------------

class TestTrade:

    def test_limit_order(self, adapter, session, make_response, caplog):
        session.request.return_value = make_response(200, {"result": True, "order_id": 123456})

        with caplog.at_level(logging.INFO):
            result = adapter.trade("long", "btc.week/usd", 6500, "2", TradeParams(Leverage.X10, ["breakout"]))

        assert result.ok
        assert result.value == "123456"
        args, kwargs = session.request.call_args
        assert args == ("GET", f"{HOST}/api/v1/future_trade.do")
        assert kwargs["params"] == {
            "symbol": "btc_usd",
            "contract_type": "this_week",
            "price": "6500.000000",
            "amount": "2.000000",
            "type": "1",
            "match_price": "0",
            "lever_rate": "10",
        }
        assert kwargs["headers"]["Authorization"] == "Bearer token-abc"
        assert "LONG BTC.WEEK/USD price=6500.0 amount=2.0 breakout" in caplog.text

    def test_market_order_from_framework_arguments(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {"result": True, "order_id": "77"})

        result = adapter.trade(TradeType.SHORT_CLOSE, "LTC.MONTH3/USD", -1, 3, (20, "stop hit"))

        assert result.value == "77"
        params = session.request.call_args.kwargs["params"]
        assert params["symbol"] == "ltc_usd"
        assert params["contract_type"] == "quarter"
        assert params["price"] == "0.000000"
        assert params["match_price"] == "1"
        assert params["type"] == "4"
        assert params["lever_rate"] == "20"

    def test_broker_rejection(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {"result": False, "error_code": 20049})

        result = adapter.trade("LONG", BTC, 6500, 1, TradeParams(Leverage.X20))

        assert result.kind is ErrorKind.PROTOCOL
        assert result.error.error_code == "20049"
        assert "20049" in result.message

    def test_missing_order_id(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {"result": True})

        result = adapter.trade("LONG", BTC, 6500, 1, TradeParams(Leverage.X20))

        assert result.kind is ErrorKind.DATA


class TestOrders:

    def test_get_order(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {
            "result": True,
            "orders": [order_json(order_id=42, type_code=2)],
        })

        result = adapter.get_order(BTC, "42")

        assert result.value == Order(
            id="42", price=6500.0, amount=2.0, deal_amount=1.0, fee=-0.01,
            trade_type=TradeType.SHORT, stock_type=BTC,
        )
        assert session.request.call_args.kwargs["params"] == {
            "symbol": "btc_usd", "contract_type": "this_week", "order_id": "42",
        }
        assert session.request.call_args.args[1] == f"{HOST}/api/v1/future_orders_info.do"

    def test_get_order_not_found(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {"result": True, "orders": []})

        assert adapter.get_order(BTC, "42").kind is ErrorKind.DATA

    def test_get_orders_requests_unfilled(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {
            "result": True,
            "orders": [order_json(order_id=1), order_json(order_id=2, type_code=3)],
        })

        result = adapter.get_orders(BTC)

        assert [o.id for o in result.value] == ["1", "2"]
        assert [o.trade_type for o in result.value] == [TradeType.LONG, TradeType.LONG_CLOSE]
        params = session.request.call_args.kwargs["params"]
        assert params["status"] == "1"
        assert params["order_id"] == "-1"
        assert params["current_page"] == "1"
        assert params["page_length"] == "50"

    def test_get_trades_requests_filled(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {"result": True, "orders": []})

        result = adapter.get_trades("LTC.WEEK2/USD")

        assert result.ok
        assert result.value == []
        params = session.request.call_args.kwargs["params"]
        assert params["status"] == "2"
        assert params["contract_type"] == "next_week"

    def test_unknown_type_code_is_kept_as_none(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {
            "result": True, "orders": [order_json(type_code=9)],
        })

        assert adapter.get_orders(BTC).value[0].trade_type is None

    def test_list_failure(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {"result": False, "error_code": 20015})

        result = adapter.get_trades(BTC)

        assert not result
        assert result.kind is ErrorKind.PROTOCOL


class TestCancelOrder:

    ORDER = Order(id="42", price=6500.0, amount=5.0, deal_amount=2.0, fee=0.0,
                  trade_type=TradeType.LONG, stock_type=BTC)

    def test_cancel(self, adapter, session, make_response, caplog):
        session.request.return_value = make_response(200, {"result": True, "order_id": "42"})

        with caplog.at_level(logging.INFO):
            result = adapter.cancel_order(self.ORDER)

        assert result.ok
        assert result.value is True
        assert session.request.call_args.kwargs["params"] == {
            "symbol": "btc_usd", "order_id": "42", "contract_type": "this_week",
        }
        assert "CANCEL BTC.WEEK/USD price=6500.0 amount=3.0" in caplog.text

    def test_cancel_rejected(self, adapter, session, make_response):
        session.request.return_value = make_response(200, {"result": False, "error_code": 20015})

        result = adapter.cancel_order(self.ORDER)

        assert not result.ok
        assert result.value is None


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

class TestTicker:

    def test_best_prices_and_midpoint(self, adapter, session, make_response):
        session.get.return_value = make_response(200, {
            "bids": [[100, 1], [99, 2]],
            "asks": [[102, 2], [101, 1]],
        })

        result = adapter.get_ticker(BTC)

        ticker = result.value
        assert ticker.buy == 100
        assert ticker.sell == 101
        assert ticker.mid == 100.5
        assert [b.price for b in ticker.bids] == [100, 99]
        assert [a.price for a in ticker.asks] == [101, 102]
        session.get.assert_called_once_with(
            f"{HOST}/api/v1/future_depth.do",
            params={"symbol": "btc_usd", "contract_type": "this_week", "size": 20},
            timeout=10.0,
        )
        assert adapter.rate_limiter.calls == 0

    def test_custom_depth(self, adapter, session, make_response):
        session.get.return_value = make_response(200, {"bids": [["1.5", "3"]], "asks": [["1.6", "4"]]})

        result = adapter.get_ticker(BTC, "5")

        assert result.value.bids[0].amount == 3.0
        assert session.get.call_args.kwargs["params"]["size"] == 5

    def test_empty_side_fails(self, adapter, session, make_response):
        session.get.return_value = make_response(200, {"bids": [[100, 1]], "asks": []})

        assert adapter.get_ticker(BTC).kind is ErrorKind.DATA

    def test_broker_error_code(self, adapter, session, make_response):
        session.get.return_value = make_response(200, {"result": False, "error_code": 20012})

        assert adapter.get_ticker(BTC).kind is ErrorKind.PROTOCOL

    def test_transport_failure(self, adapter, session):
        session.get.side_effect = requests.ConnectionError("refused")

        assert adapter.get_ticker(BTC).kind is ErrorKind.TRANSPORT


class TestRecords:

    def test_merge_across_calls(self, adapter, session, make_response):
        session.get.return_value = make_response(200, [kline(300, 3), kline(200, 2), kline(100, 1)])
        first = adapter.get_records(BTC, "M")

        session.get.return_value = make_response(200, [kline(400, 4), kline(300, 3.5)])
        second = adapter.get_records(BTC, "M")

        assert [(r.time, r.close) for r in first.value] == [(100, 1), (200, 2), (300, 3)]
        assert [(r.time, r.close) for r in second.value] == [(100, 1), (200, 2), (300, 3.5), (400, 4)]
        assert session.get.call_args.kwargs["params"] == {
            "symbol": "btc_usd", "contract_type": "this_week", "type": "1min", "size": 200,
        }
        assert session.get.call_args.args == (f"{HOST}/api/v1/future_kline.do",)

    def test_window_size(self, adapter, session, make_response):
        session.get.return_value = make_response(200, [kline(300, 3), kline(200, 2), kline(100, 1)])

        result = adapter.get_records(BTC, "h4", 2)

        assert [r.time for r in result.value] == [200, 300]
        assert session.get.call_args.kwargs["params"]["type"] == "4hour"

    def test_instruments_do_not_share_a_series(self, adapter, session, make_response):
        session.get.return_value = make_response(200, [kline(300, 3)])
        adapter.get_records(BTC, "M")

        session.get.return_value = make_response(200, [kline(100, 9)])
        result = adapter.get_records("LTC.WEEK/USD", "M")

        assert [(r.time, r.close) for r in result.value] == [(100, 9)]

    def test_error_payload(self, adapter, session, make_response):
        session.get.return_value = make_response(200, {"result": False, "error_code": 20012})

        assert adapter.get_records(BTC, "M").kind is ErrorKind.PROTOCOL

    def test_malformed_rows(self, adapter, session, make_response):
        session.get.return_value = make_response(200, [[1, 2]])

        assert adapter.get_records(BTC, "M").kind is ErrorKind.DATA


# ---------------------------------------------------------------------------
# Identity & pacing
# ---------------------------------------------------------------------------

class TestIdentityAndPacing:

    def test_identity(self, adapter):
        assert adapter.get_type() == "oanda.v20"
        assert adapter.get_name() == "oanda-main"
        assert adapter.get_min_amount("btc.week/usd") == 1.0
        assert adapter.get_min_amount("EUR/USD") == 0.0

    def test_set_limit(self, adapter):
        assert adapter.set_limit("5") == 5.0
        assert adapter.set_limit(0) == 5.0

    def test_auto_sleep_after_a_batch(self, adapter, session, clock, make_response):
        session.request.return_value = make_response(200, {"account": {"currency": "USD"}})
        for _ in range(4):
            adapter.get_account()
        clock.advance(0.1)

        slept = adapter.auto_sleep()

        assert slept == pytest.approx(0.3)
        assert adapter.rate_limiter.calls == 0

    def test_log(self, adapter, caplog):
        with caplog.at_level(logging.INFO):
            adapter.log("strategy ", "started")

        assert "[trader-1/oanda.v20] INFO strategy started" in caplog.text
