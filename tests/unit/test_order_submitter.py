"""
Testes do OrderSubmitter: prioridade de respostas, flag submitting e
aplicação atômica do resultado.
"""
import asyncio

import pytest

from core.contracts.gateway import HttpReply, TransportError
from core.entities.book import Book
from core.entities.order import OrderRequest, OrderSide
from core.entities.trade import Trade
from application.state.view_state import ViewState
from application.services.sync.order_submitter import InvalidOrderError, OrderSubmitter
from application.services.sync.messages import SUBMIT_DECODE_MESSAGE, SUBMIT_TRANSPORT_MESSAGE
from tests.conftest import book_payload, json_reply, order_payload

BUY_10200 = OrderRequest(side="buy", price=10200, qty=3)


@pytest.fixture
def submitter(gateway, view_state, event_bus, monitor) -> OrderSubmitter:
    return OrderSubmitter(gateway, view_state, depth=10, event_bus=event_bus, monitor=monitor)


class TestScenarios:

    @pytest.mark.asyncio
    async def test_happy_path_fills_against_resting_ask(self, gateway, view_state, submitter):
        """Compra cruza com a venda em repouso #7 e recebe o id 42."""
        gateway.order_replies.append(json_reply(200, order_payload(
            order_id=42, trades=[(10200, 3, 7)], bids=[], asks=[(10300, 5)]
        )))

        result = await submitter.submit(BUY_10200)

        assert result.order_id == 42
        assert view_state.last_order_id == 42
        assert view_state.last_trades == [
            Trade(price=10200, qty=3, taker_order_id=42, maker_order_id=7)
        ]
        assert [(l.price, l.qty) for l in view_state.book.asks] == [(10300, 5)]
        assert view_state.submit_error is None
        assert view_state.submitting is False

    @pytest.mark.asyncio
    async def test_server_error_message_is_shown(self, gateway, view_state, submitter):
        gateway.order_replies.append(json_reply(400, {"error": "price must be positive"}))

        result = await submitter.submit(BUY_10200)

        assert result is None
        assert view_state.submit_error == "price must be positive"
        assert view_state.last_order_id is None
        assert view_state.submitting is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["", "<html>oops</html>", '{"detail": "x"}', '{"error": ""}', '{"error": 5}'])
    async def test_server_error_without_message_uses_status(self, gateway, view_state, submitter, body):
        gateway.order_replies.append(HttpReply(status=500, body=body))

        await submitter.submit(BUY_10200)

        assert "500" in view_state.submit_error
        assert view_state.submitting is False


class TestSubmittingFlag:
    """submitting é True durante a chamada e False em todos os desfechos."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("outcome", [
        json_reply(200, order_payload()),
        TransportError("connection reset"),
        json_reply(503, {"error": "busy"}),
        HttpReply(status=200, body='{"order_id": "x"}'),
    ], ids=["success", "transport", "http-error", "decode"])
    async def test_flag_brackets_every_outcome(self, gateway, view_state, submitter, outcome):
        pending = asyncio.get_running_loop().create_future()
        gateway.order_replies.append(pending)

        task = submitter.submit(BUY_10200)
        assert view_state.submitting is True
        await asyncio.sleep(0)
        assert view_state.submitting is True

        pending.set_result(outcome)
        await task

        assert view_state.submitting is False

    @pytest.mark.asyncio
    async def test_submit_clears_previous_error_synchronously(self, view_state, submitter):
        view_state.fail_submission("HTTP 500")

        task = submitter.submit(BUY_10200)

        assert view_state.submit_error is None
        await task

    @pytest.mark.asyncio
    async def test_change_notifications_bracket_the_request(self, gateway, event_bus, submitter):
        gateway.order_replies.append(json_reply(200, order_payload()))

        await submitter.submit(BUY_10200)

        changes = event_bus.of_type("VIEW_STATE_CHANGED")
        assert 'submitting' in changes[0]
        assert changes[-1] == ('submitting',)


class TestFailureIsolation:
    """Falhas nunca tocam livro, id da ordem ou negócios."""

    @pytest.fixture
    def filled_state(self, event_bus) -> ViewState:
        state = ViewState(event_bus=event_bus)
        state.apply_poll_success(Book.model_validate(book_payload(bids=[(10000, 1)])), state.issue_stamp())
        return state

    @pytest.mark.asyncio
    @pytest.mark.parametrize("outcome, message", [
        (TransportError("refused"), SUBMIT_TRANSPORT_MESSAGE),
        (json_reply(409, {"error": "rejected"}), "rejected"),
        (json_reply(200, {"order_id": 1, "trades": [], "book": {"bids": "nope"}}), SUBMIT_DECODE_MESSAGE),
        (HttpReply(status=200, body="{"), SUBMIT_DECODE_MESSAGE),
        (json_reply(200, {"order_id": 7, "trades": [], "book": {}}), SUBMIT_DECODE_MESSAGE),
        (json_reply(200, {"order_id": "7", "trades": [], "book": book_payload()}), SUBMIT_DECODE_MESSAGE),
        (json_reply(200, {"order_id": 7, "trades": [], "book": {"bids": [{"price": 1, "qty": True}], "asks": []}}),
         SUBMIT_DECODE_MESSAGE),
    ])
    async def test_failure_leaves_results_untouched(self, gateway, filled_state, outcome, message):
        submitter = OrderSubmitter(gateway, filled_state)
        gateway.order_replies.append(json_reply(200, order_payload(order_id=5, trades=[(10000, 1, 2)])))
        await submitter.submit(BUY_10200)
        before = filled_state.snapshot()

        gateway.order_replies.append(outcome)
        await submitter.submit(BUY_10200)

        after = filled_state.snapshot()
        assert after.submit_error == message
        assert after.book is before.book
        assert after.last_order_id == 5
        assert after.last_trades == before.last_trades

    @pytest.mark.asyncio
    async def test_rejection_is_published_and_counted(self, gateway, event_bus, monitor, submitter):
        gateway.order_replies.append(json_reply(422, {"error": "qty must be positive"}))

        await submitter.submit(BUY_10200)

        assert event_bus.of_type("ORDER_REJECTED") == [
            {'operation': 'ordem', 'message': "qty must be positive", 'status': 422}
        ]
        assert monitor.get_totals()['orders_rejected'] == 1


class TestResults:

    @pytest.mark.asyncio
    async def test_trades_are_replaced_not_appended(self, gateway, view_state, submitter):
        gateway.order_replies.append(json_reply(200, order_payload(order_id=1, trades=[(10200, 1, 7), (10300, 1, 8)])))
        gateway.order_replies.append(json_reply(200, order_payload(order_id=2, trades=[(10400, 2, 9)])))

        await submitter.submit(BUY_10200)
        await submitter.submit(BUY_10200)

        assert view_state.last_order_id == 2
        assert [t.maker_order_id for t in view_state.last_trades] == [9]

    @pytest.mark.asyncio
    async def test_order_with_no_fills_clears_trades(self, gateway, view_state, submitter):
        gateway.order_replies.append(json_reply(200, order_payload(order_id=1, trades=[(10200, 1, 7)])))
        gateway.order_replies.append(json_reply(200, order_payload(order_id=2, trades=[])))

        await submitter.submit(BUY_10200)
        await submitter.submit(BUY_10200)

        assert view_state.last_trades == []

    @pytest.mark.asyncio
    async def test_duplicate_submits_are_two_operations(self, gateway, submitter):
        gateway.order_replies.extend([json_reply(200, order_payload(order_id=1)),
                                      json_reply(200, order_payload(order_id=2))])

        first = submitter.submit(BUY_10200)
        second = submitter.submit(BUY_10200)
        results = await asyncio.gather(first, second)

        assert [r.order_id for r in results] == [1, 2]
        assert gateway.count('post_order') == 2

    @pytest.mark.asyncio
    async def test_overlapping_submissions_first_completion_clears_flag(self, gateway, view_state, submitter):
        loop = asyncio.get_running_loop()
        slow, fast = loop.create_future(), loop.create_future()
        gateway.order_replies.extend([slow, fast])

        first = submitter.submit(BUY_10200)
        second = submitter.submit(BUY_10200)
        await asyncio.sleep(0)
        fast.set_result(json_reply(200, order_payload(order_id=2)))
        await second

        assert view_state.submitting is False
        slow.set_result(json_reply(200, order_payload(order_id=1)))
        await first
        assert view_state.last_order_id == 1

    @pytest.mark.asyncio
    async def test_request_carries_payload_and_depth(self, gateway, view_state):
        submitter = OrderSubmitter(gateway, view_state, depth=20)
        gateway.order_replies.append(json_reply(200, order_payload()))

        await submitter.submit(OrderRequest(side=OrderSide.SELL, price=9900, qty=2))

        assert gateway.calls == [('post_order', {'side': 'sell', 'price': 9900, 'qty': 2}, 20)]

    @pytest.mark.asyncio
    async def test_accepted_order_is_published_and_counted(self, gateway, event_bus, monitor, submitter):
        gateway.order_replies.append(json_reply(200, order_payload(order_id=42)))

        await submitter.submit(BUY_10200)

        accepted = event_bus.of_type("ORDER_ACCEPTED")
        assert len(accepted) == 1 and accepted[0].order_id == 42
        assert monitor.get_totals()['orders_accepted'] == 1

    def test_submit_requires_running_loop(self, view_state, submitter):
        with pytest.raises(RuntimeError):
            submitter.submit(BUY_10200)
        assert view_state.submitting is False


class TestCancel:

    @pytest.mark.asyncio
    async def test_cancel_overwrites_book_and_keeps_last_order(self, gateway, view_state, event_bus, submitter):
        gateway.order_replies.append(json_reply(200, order_payload(order_id=42, bids=[(10200, 3)])))
        await submitter.submit(BUY_10200)
        gateway.cancel_replies.append(json_reply(200, {
            "cancelled": True, "order_id": 42, "book": book_payload()
        }))

        result = await submitter.cancel(42)

        assert result.cancelled is True
        assert view_state.last_cancelled_order_id == 42
        assert view_state.last_order_id == 42
        assert view_state.book.is_empty
        assert view_state.submitting is False
        assert len(event_bus.of_type("ORDER_CANCELLED")) == 1
        assert gateway.calls[-1] == ('cancel_order', 42, 10)

    @pytest.mark.asyncio
    async def test_cancel_unknown_order_sets_error(self, gateway, view_state, submitter):
        task = submitter.cancel(999)
        assert view_state.submitting is True

        result = await task

        assert result is None
        assert view_state.submit_error == "order not found"
        assert view_state.last_cancelled_order_id is None
        assert view_state.submitting is False


class TestBuildRequest:

    @pytest.mark.parametrize("side, price, qty, expected", [
        ("buy", "10200", "3", {'side': 'buy', 'price': 10200, 'qty': 3}),
        (" SELL ", "99.5", 2, {'side': 'sell', 'price': 99.5, 'qty': 2}),
        (OrderSide.BUY, 100, 1.5, {'side': 'buy', 'price': 100, 'qty': 1.5}),
    ])
    def test_valid_input(self, side, price, qty, expected):
        assert OrderSubmitter.build_request(side, price, qty).to_payload() == expected

    def test_integers_stay_integers(self):
        request = OrderSubmitter.build_request("buy", "10200", "1")
        assert isinstance(request.price, int)
        assert isinstance(request.qty, int)

    @pytest.mark.parametrize("side, price, qty", [
        ("hold", "100", "1"),
        ("buy", "abc", "1"),
        ("buy", "", "1"),
        ("buy", "0", "1"),
        ("buy", "100", "-2"),
        ("buy", "nan", "1"),
        ("buy", "inf", "1"),
        ("buy", True, "1"),
    ])
    def test_invalid_input(self, side, price, qty):
        with pytest.raises(InvalidOrderError):
            OrderSubmitter.build_request(side, price, qty)


class TestAccounting:

    @pytest.mark.asyncio
    async def test_failed_cancel_is_not_counted_as_rejected_order(self, gateway, monitor, submitter):
        await submitter.cancel(999)

        totals = monitor.get_totals()
        assert totals['cancels_failed'] == 1
        assert totals['orders_rejected'] == 0

    @pytest.mark.asyncio
    async def test_stale_submission_book_is_counted(self, gateway, event_bus, monitor):
        state = ViewState(event_bus=event_bus, reject_stale_snapshots=True)
        submitter = OrderSubmitter(gateway, state, monitor=monitor)
        pending = asyncio.get_running_loop().create_future()
        gateway.order_replies.append(pending)

        task = submitter.submit(BUY_10200)
        await asyncio.sleep(0)
        state.apply_poll_success(Book.model_validate(book_payload(bids=[(10500, 1)])), state.issue_stamp())
        pending.set_result(json_reply(200, order_payload(order_id=42, bids=[(10000, 1)])))
        await task

        assert state.last_order_id == 42
        assert state.book.best_bid == 10500
        assert monitor.get_totals()['rejected_stale'] == 1


class TestUnexpectedErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["submit", "cancel"])
    async def test_unexpected_gateway_error_becomes_submit_error(self, gateway, view_state, submitter, operation):
        gateway.order_replies.append(RuntimeError("gateway quebrado"))
        gateway.cancel_replies.append(RuntimeError("gateway quebrado"))

        if operation == "submit":
            result = await submitter.submit(BUY_10200)
        else:
            result = await submitter.cancel(42)

        assert result is None
        assert view_state.submit_error == SUBMIT_TRANSPORT_MESSAGE
        assert view_state.submitting is False
