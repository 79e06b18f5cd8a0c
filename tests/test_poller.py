"""Tests for the client polling contract."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from notifyhub.client import (
    GatewayError,
    NotificationGatewayClient,
    NotificationPoller,
    PolledNotification,
    TransientGatewayError,
)


class FakeGateway:
    """In-process stand-in for the HTTP gateway served through ``MockTransport``."""

    def __init__(self, unread_ids: list[int], *, delay: float = 0.0) -> None:
        self.read_state = {notification_id: False for notification_id in unread_ids}
        self.delay = delay
        self.fetches = 0
        self.mark_read_calls: list[list[int]] = []
        self.mark_read_failures = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer token-123"
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if request.method == "GET" and request.url.path == "/notifications/unread":
                self.fetches += 1
                items = [
                    {
                        "id": notification_id,
                        "message": f"notification {notification_id}",
                        "created_at": "2024-05-01T09:00:00+05:30",
                        "is_read": False,
                        "target_url": None,
                    }
                    for notification_id, is_read in sorted(self.read_state.items(), reverse=True)
                    if not is_read
                ]
                return httpx.Response(200, json=items)
            if request.method == "POST" and request.url.path == "/notifications/mark-read":
                ids = json.loads(request.content)["ids"]
                self.mark_read_calls.append(ids)
                if self.mark_read_failures:
                    self.mark_read_failures -= 1
                    return httpx.Response(503, json={"detail": "store unavailable"})
                updated = 0
                for notification_id in ids:
                    if self.read_state.get(notification_id) is False:
                        self.read_state[notification_id] = True
                        updated += 1
                return httpx.Response(200, json={"updated_count": updated})
            return httpx.Response(404, json={"detail": "Not Found"})
        finally:
            self.in_flight -= 1

    def client(self) -> NotificationGatewayClient:
        return NotificationGatewayClient(
            "http://gateway.test",
            "token-123",
            transport=httpx.MockTransport(self.handler),
        )


def _poller(gateway: FakeGateway, presented: list[int], **kwargs) -> NotificationPoller:
    options = {"interval": 10.0, "request_timeout": 1.0, "ack_retry_delay": 0.0}
    options.update(kwargs)
    return NotificationPoller(
        gateway.client(),
        lambda item: presented.append(item.id),
        owns_gateway=True,
        **options,
    )


def test_unread_item_is_presented_once_across_ticks() -> None:
    gateway = FakeGateway([11])
    presented: list[int] = []

    async def scenario() -> None:
        poller = _poller(gateway, presented)
        first = await poller.poll_once()
        second = await poller.poll_once()
        assert [item.id for item in first] == [11]
        assert second == []
        assert poller.seen_ids == frozenset({11})
        await poller.stop()

    asyncio.run(scenario())

    assert presented == [11]
    assert gateway.fetches == 2
    assert gateway.read_state[11] is False
    assert gateway.mark_read_calls == []


def test_new_items_are_presented_as_they_arrive() -> None:
    gateway = FakeGateway([1, 2])
    presented: list[int] = []

    async def scenario() -> None:
        poller = _poller(gateway, presented)
        await poller.poll_once()
        gateway.read_state[3] = False
        await poller.poll_once()
        await poller.stop()

    asyncio.run(scenario())

    assert presented == [2, 1, 3]


def test_async_presenter_is_awaited_and_failures_do_not_repeat() -> None:
    gateway = FakeGateway([5])
    calls: list[int] = []

    async def presenter(item) -> None:
        calls.append(item.id)
        raise RuntimeError("toast container unavailable")

    async def scenario() -> None:
        poller = NotificationPoller(
            gateway.client(), presenter, interval=10.0, request_timeout=1.0, owns_gateway=True
        )
        await poller.poll_once()
        await poller.poll_once()
        await poller.stop()

    asyncio.run(scenario())

    assert calls == [5]


def test_acknowledge_marks_read_on_server() -> None:
    gateway = FakeGateway([8])
    presented: list[int] = []

    async def scenario() -> bool:
        poller = _poller(gateway, presented)
        await poller.poll_once()
        acknowledged = await poller.acknowledge(8)
        assert await poller.poll_once() == []
        await poller.stop()
        return acknowledged

    assert asyncio.run(scenario()) is True
    assert gateway.read_state[8] is True
    assert gateway.mark_read_calls == [[8]]


def test_acknowledge_retries_transient_failures() -> None:
    gateway = FakeGateway([8])
    gateway.mark_read_failures = 2

    async def scenario() -> bool:
        poller = _poller(gateway, [], max_ack_attempts=3)
        result = await poller.acknowledge(8)
        await poller.stop()
        return result

    assert asyncio.run(scenario()) is True
    assert len(gateway.mark_read_calls) == 3
    assert gateway.read_state[8] is True


def test_failed_acknowledge_keeps_item_seen() -> None:
    gateway = FakeGateway([8])
    gateway.mark_read_failures = 10
    presented: list[int] = []

    async def scenario() -> tuple[bool, list]:
        poller = _poller(gateway, presented, max_ack_attempts=2)
        await poller.poll_once()
        result = await poller.acknowledge(8)
        again = await poller.poll_once()
        await poller.stop()
        return result, again

    result, again = asyncio.run(scenario())

    assert result is False
    assert again == []
    assert presented == [8]
    assert len(gateway.mark_read_calls) == 2
    assert gateway.read_state[8] is False


def test_loop_polls_on_interval_without_overlap() -> None:
    gateway = FakeGateway([21], delay=0.01)
    presented: list[int] = []

    async def scenario() -> None:
        poller = _poller(gateway, presented, interval=0.05, request_timeout=0.04)
        async with poller:
            assert poller.is_running
            await asyncio.sleep(0.22)
        assert not poller.is_running
        assert poller.seen_ids == frozenset()

    asyncio.run(scenario())

    assert presented == [21]
    assert 2 <= gateway.fetches <= 6
    assert gateway.max_in_flight == 1


def test_stuck_request_times_out_before_next_tick() -> None:
    gateway = FakeGateway([1], delay=0.5)

    async def scenario() -> None:
        poller = _poller(gateway, [], interval=1.0, request_timeout=0.05)
        with pytest.raises(asyncio.TimeoutError):
            await poller.poll_once()
        await poller.stop()

    asyncio.run(scenario())


def test_stop_cancels_pending_acknowledgments_and_closes_client() -> None:
    gateway = FakeGateway([1], delay=0.5)

    async def scenario() -> tuple[asyncio.Task, NotificationGatewayClient]:
        client = gateway.client()
        poller = NotificationPoller(
            client, lambda item: None, interval=2.0, request_timeout=1.0, owns_gateway=True
        )
        poller.start()
        task = poller.acknowledge_soon(1)
        await asyncio.sleep(0.01)
        await poller.stop()
        return task, client

    task, client = asyncio.run(scenario())

    assert task.cancelled()
    assert client.is_closed


@pytest.mark.parametrize(
    ("interval", "request_timeout"),
    [(1.0, 1.0), (1.0, 2.0), (0.0, 0.0), (1.0, 0.0)],
)
def test_timeout_must_be_shorter_than_interval(interval, request_timeout) -> None:
    with pytest.raises(ValueError):
        NotificationPoller(
            object(), lambda item: None, interval=interval, request_timeout=request_timeout
        )


def test_gateway_client_classifies_failures() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/notifications/unread":
            return httpx.Response(401, json={"detail": "Not authenticated"})
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario() -> None:
        client = NotificationGatewayClient(
            "http://gateway.test", "token-123", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(GatewayError) as rejected:
            await client.fetch_unread()
        assert not isinstance(rejected.value, TransientGatewayError)
        assert rejected.value.status_code == 401
        assert rejected.value.detail == "Not authenticated"

        with pytest.raises(TransientGatewayError):
            await client.mark_read([1])
        await client.aclose()

    asyncio.run(scenario())


class FlakyGateway:
    """Gateway whose first fetch fails with an error outside the gateway hierarchy."""

    def __init__(self) -> None:
        self.calls = 0
        self.closed = False

    async def fetch_unread(self):
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("response body could not be decoded")
        return [
            PolledNotification(
                id=4, message="Shift swap approved", created_at="2024-05-01T09:00:00+00:00"
            )
        ]

    async def mark_read(self, notification_ids) -> int:
        return len(notification_ids)

    async def aclose(self) -> None:
        self.closed = True


def test_unexpected_poll_error_does_not_end_the_loop() -> None:
    gateway = FlakyGateway()
    presented: list[int] = []

    async def scenario() -> bool:
        poller = NotificationPoller(
            gateway,
            lambda item: presented.append(item.id),
            interval=0.05,
            request_timeout=0.04,
        )
        poller.start()
        await asyncio.sleep(0.3)
        running = poller.is_running
        await poller.stop()
        return running

    assert asyncio.run(scenario()) is True
    assert gateway.calls > 1
    assert presented == [4]
    assert gateway.closed is False
