"""Session-scoped polling loop that presents each unread notification once."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from notifyhub.config import get_settings

from .gateway_client import GatewayError, PolledNotification, TransientGatewayError

logger = logging.getLogger(__name__)

Presenter = Callable[[PolledNotification], Awaitable[None] | None]


class NotificationGateway(Protocol):
    async def fetch_unread(self) -> list[PolledNotification]: ...

    async def mark_read(self, notification_ids: list[int]) -> int: ...

    async def aclose(self) -> None: ...


class NotificationPoller:
    """Poll the gateway on a fixed interval and present unseen notifications.

    Each instance owns its seen set for the lifetime of one client session.
    Ticks never overlap: a tick waits for its request (bounded by
    ``request_timeout``) before sleeping until the next interval boundary.
    ``stop()`` cancels the loop and any pending acknowledgments and forgets
    the seen set.
    """

    def __init__(
        self,
        gateway: NotificationGateway,
        presenter: Presenter,
        *,
        interval: float | None = None,
        request_timeout: float | None = None,
        max_ack_attempts: int | None = None,
        ack_retry_delay: float | None = None,
        owns_gateway: bool = False,
    ) -> None:
        settings = get_settings()
        self._gateway = gateway
        self._presenter = presenter
        self._interval = interval if interval is not None else settings.poll_interval_seconds
        if request_timeout is None:
            request_timeout = settings.poll_request_timeout_seconds
            if request_timeout >= self._interval:
                request_timeout = self._interval / 2
        self._request_timeout = request_timeout
        if self._interval <= 0:
            raise ValueError("interval must be positive")
        if not 0 < self._request_timeout < self._interval:
            raise ValueError("request_timeout must be positive and lower than interval")
        self._max_ack_attempts = (
            max_ack_attempts if max_ack_attempts is not None else settings.mark_read_max_attempts
        )
        if self._max_ack_attempts < 1:
            raise ValueError("max_ack_attempts must be at least 1")
        self._ack_retry_delay = (
            ack_retry_delay
            if ack_retry_delay is not None
            else settings.mark_read_retry_delay_seconds
        )
        self._owns_gateway = owns_gateway
        self._seen: set[int] = set()
        self._task: asyncio.Task[None] | None = None
        self._ack_tasks: set[asyncio.Task[bool]] = set()

    @property
    def seen_ids(self) -> frozenset[int]:
        return frozenset(self._seen)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the polling loop on the running event loop."""

        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="notification-poller"
        )

    async def stop(self) -> None:
        """Cancel the loop and pending acknowledgments and reset session state."""

        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        ack_tasks = list(self._ack_tasks)
        for ack_task in ack_tasks:
            ack_task.cancel()
        if ack_tasks:
            await asyncio.gather(*ack_tasks, return_exceptions=True)
        self._ack_tasks.clear()

        self._seen.clear()
        if self._owns_gateway:
            await self._gateway.aclose()

    async def __aenter__(self) -> "NotificationPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def poll_once(self) -> list[PolledNotification]:
        """Fetch unread notifications and present the ones not seen yet.

        Returns the notifications presented by this call. The request is
        cancelled when it exceeds ``request_timeout``.
        """

        items = await asyncio.wait_for(
            self._gateway.fetch_unread(), timeout=self._request_timeout
        )
        fresh: list[PolledNotification] = []
        for item in items:
            if item.id in self._seen:
                continue
            self._seen.add(item.id)
            fresh.append(item)

        for item in fresh:
            try:
                result = self._presenter(item)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Presenting notification %s failed", item.id)
        return fresh

    async def acknowledge(self, notification_id: int) -> bool:
        """Mark ``notification_id`` read, retrying transient failures.

        The id stays in the seen set even when every attempt fails, so the
        notification is not presented again during this session.
        """

        self._seen.add(notification_id)
        for attempt in range(1, self._max_ack_attempts + 1):
            try:
                await asyncio.wait_for(
                    self._gateway.mark_read([notification_id]),
                    timeout=self._request_timeout,
                )
                return True
            except (TransientGatewayError, asyncio.TimeoutError) as exc:
                logger.warning(
                    "Mark-read attempt %s/%s for notification %s failed: %s",
                    attempt,
                    self._max_ack_attempts,
                    notification_id,
                    exc,
                )
            except GatewayError as exc:
                logger.error(
                    "Mark-read for notification %s rejected: %s", notification_id, exc
                )
                return False
            if attempt < self._max_ack_attempts and self._ack_retry_delay:
                await asyncio.sleep(self._ack_retry_delay * attempt)
        return False

    def acknowledge_soon(self, notification_id: int) -> asyncio.Task[bool]:
        """Schedule :meth:`acknowledge` without waiting, e.g. from a UI callback."""

        task = asyncio.get_running_loop().create_task(self.acknowledge(notification_id))
        self._ack_tasks.add(task)
        task.add_done_callback(self._ack_tasks.discard)
        return task

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await self.poll_once()
            except asyncio.TimeoutError:
                logger.warning(
                    "Notification poll timed out after %ss", self._request_timeout
                )
            except TransientGatewayError as exc:
                logger.warning("Notification poll failed, retrying next tick: %s", exc)
            except GatewayError as exc:
                logger.error("Notification poll rejected: %s", exc)
            except Exception:
                logger.exception("Notification poll failed unexpectedly")
            elapsed = loop.time() - started
            await asyncio.sleep(max(self._interval - elapsed, 0.0))


__all__ = ["NotificationGateway", "NotificationPoller", "Presenter"]
