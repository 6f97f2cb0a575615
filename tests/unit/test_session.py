"""End-to-end tests for DealerOrders / ClientOrders over in-memory doubles."""

import asyncio
from unittest.mock import MagicMock

import pytest

from src.md_common.enums import OrderStatus, QueueBucket
from src.md_common.errors import FetchError, PaymentUnavailableError
from src.md_queue.session import ClientOrders, DealerOrders
from tests.helpers import (
    CLIENT_ID,
    DEALER_ID,
    FakeOrderBackend,
    FakePushChannel,
    make_order,
    settle,
)


def _world(*orders) -> tuple[FakeOrderBackend, FakePushChannel]:
    channel = FakePushChannel()
    return FakeOrderBackend(*orders, channel=channel), channel


class TestLifecycle:
    async def test_enter_subscribes_then_loads(self) -> None:
        backend, channel = _world(make_order(id="a"))
        async with DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel) as dealer:
            assert dealer.mounted
            assert channel.open_topics == [f"orders:dealer:{DEALER_ID}"]
            assert [o.id for o in dealer.queue.pending] == ["a"]
            assert dealer.queue.unseen_count == 0
        assert not dealer.mounted
        assert dealer.sync.closed
        assert channel.open_topics == []

    async def test_session_is_single_use(self) -> None:
        backend, channel = _world()
        dealer = DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel)
        async with dealer:
            pass
        with pytest.raises(RuntimeError):
            await dealer.open()

    async def test_failed_initial_load_releases_subscription(self) -> None:
        backend, channel = _world()
        backend.failures.append(FetchError("HTTP 503: down"))
        dealer = DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel)
        with pytest.raises(FetchError):
            async with dealer:
                pass
        assert channel.open_topics == []
        assert not dealer.mounted

    async def test_manual_refresh_after_failure(self) -> None:
        backend, channel = _world(make_order(id="a"))
        dealer = DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel)
        backend.failures.append(FetchError("HTTP 503: down"))
        with pytest.raises(FetchError):
            await dealer.refresh()
        queue = await dealer.refresh()
        assert [o.id for o in queue.pending] == ["a"]
        await dealer.close()

    async def test_connect_builds_http_session(self) -> None:
        session = ClientOrders.connect("client-9", base_url="http://store/api/v1")
        assert session.owner_id == "client-9"
        assert session.sync.topic() == "orders:client:client-9"
        await session.close()


class TestNegotiationAcrossSessions:
    async def test_request_counter_accept_complete(self) -> None:
        backend, channel = _world()
        leads = MagicMock()
        async with (
            DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel) as dealer,
            ClientOrders(CLIENT_ID, backend.store_for(CLIENT_ID), channel) as client,
        ):
            dealer.on_new_lead(leads)

            order = await client.create(DEALER_ID, 12000, "gig-1", notes="two cars")
            await settle()
            assert [o.id for o in dealer.queue.pending] == [order.id]
            assert dealer.queue.is_unseen(order.id)
            leads.assert_called_once()

            await dealer.counter(order.id, 9500)
            assert not dealer.queue.is_unseen(order.id)
            await settle()
            assert client.queue.pending[0].status is OrderStatus.COUNTERED

            await client.accept(order.id)
            await settle()
            assert [o.id for o in dealer.queue.active] == [order.id]

            await dealer.mark_in_progress(order.id)
            await dealer.mark_completed(order.id)
            await settle()

            done = dealer.queue.bucket(QueueBucket.COMPLETED)
            assert [o.agreed_price for o in done] == [9500]
            assert client.queue.completed[0].status is OrderStatus.COMPLETED

    async def test_client_pay_is_unavailable(self) -> None:
        backend, channel = _world(make_order(id="a", status="accepted", agreed_price=12000))
        async with ClientOrders(CLIENT_ID, backend.store_for(CLIENT_ID), channel) as client:
            with pytest.raises(PaymentUnavailableError):
                await client.pay_and_proceed("a")

    async def test_clear_unseen_from_view(self) -> None:
        backend, channel = _world()
        async with (
            DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel) as dealer,
            ClientOrders(CLIENT_ID, backend.store_for(CLIENT_ID), channel) as client,
        ):
            order = await client.create(DEALER_ID, 5000, "gig-2")
            await settle()
            assert dealer.clear_unseen(order.id)
            assert dealer.queue.unseen_count == 0

    async def test_on_change_notified(self) -> None:
        backend, channel = _world()
        changed = MagicMock()
        async with (
            DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel) as dealer,
            ClientOrders(CLIENT_ID, backend.store_for(CLIENT_ID), channel) as client,
        ):
            dealer.on_change(changed)
            await client.create(DEALER_ID, 5000, "gig-2")
            await settle()
        changed.assert_called()


class TestOpenedAndUnmount:
    async def test_order_rendered_marks_opened_once(self) -> None:
        backend, channel = _world(make_order(id="a"))
        async with DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel) as dealer:
            dealer.order_rendered("a")
            dealer.order_rendered("a")
            await settle()
            assert dealer.sync.get("a").is_opened
        assert len(backend.calls_of("opened")) == 1

    async def test_mutation_finishing_after_close_is_discarded(self) -> None:
        backend, channel = _world(make_order(id="a"))
        backend.gate = asyncio.Event()
        dealer = DealerOrders(DEALER_ID, backend.store_for(DEALER_ID), channel)
        await dealer.open()
        task = asyncio.create_task(dealer.accept("a"))
        await settle()
        await dealer.close()
        backend.gate.set()

        result = await task
        assert result.status is OrderStatus.ACCEPTED
        assert dealer.sync.get("a").status is OrderStatus.PENDING
        assert not dealer.actions.is_updating("a")
