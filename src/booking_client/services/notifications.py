"""Polling notification feed with optimistic mark-as-read."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from booking_client.adapters.notification_client import NotificationFeedClient
from booking_client.domain.errors import SessionExpiredError
from booking_client.domain.notifications import (
    NotificationAudience,
    NotificationFeed,
    NotificationRecord,
)
from booking_client.services.reconcile import PendingWrites

_logger = logging.getLogger(__name__)


@dataclass
class NotificationReconciler:
    """Keeps a local view of a notification feed in step with the server.

    Mark-as-read calls are applied locally before the server confirms them.
    Every poll merges the server's records with those pending writes, so a
    poll that races ahead of a write does not flip a notification back to
    unread.
    """

    client: NotificationFeedClient
    owner_id: str | None
    audience: NotificationAudience = NotificationAudience.CLIENT
    poll_interval: float = 10.0
    mark_read_refresh_delay: float = 1.0
    debug: bool = False
    on_session_expired: Callable[[], None] | None = None
    notifications: list[NotificationRecord] = field(default_factory=list)
    unread_count: int = 0
    server_unread_count: int | None = None
    error: str | None = None
    loading: bool = False
    _pending_reads: PendingWrites[int, bool] = field(default_factory=PendingWrites)
    _poll_task: asyncio.Task[None] | None = field(default=None, repr=False)
    _follow_ups: set[asyncio.Task[None]] = field(default_factory=set, repr=False)

    @property
    def pending_read_ids(self) -> set[int]:
        return self._pending_reads.keys()

    def is_synced(self, notification_id: int) -> bool:
        """False while a local read of the notification awaits confirmation."""
        return not self._pending_reads.is_pending(notification_id)

    @property
    def running(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def start(self) -> None:
        """Start the recurring poll on the running event loop."""
        if self.owner_id is None:
            self._reset()
            return
        if self.running:
            return
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())

    async def stop(self) -> None:
        """Cancel the poll loop and any scheduled follow-up polls."""
        tasks = [task for task in (self._poll_task, *self._follow_ups) if task]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._poll_task = None
        self._follow_ups.clear()

    async def refresh(self) -> None:
        """Fetch the feed and merge it into the local view."""
        if self.owner_id is None:
            self._reset()
            return
        self.loading = True
        self.error = None
        try:
            feed = await self.client.fetch_feed(self.owner_id)
        except SessionExpiredError:
            raise
        except Exception as exc:
            _logger.warning("Failed to fetch %s notifications: %s", self.audience, exc)
            self.error = str(exc) or "Failed to fetch notifications"
            return
        finally:
            self.loading = False
        self.apply_feed(feed)

    def apply_feed(self, feed: NotificationFeed) -> None:
        """Merge a server feed with pending local reads.

        The unread count is recomputed from the merged records; the server's
        count is kept only for reference.
        """
        local = {record.notification_id: record for record in self.notifications}
        merged: list[NotificationRecord] = []
        for remote in feed.records:
            previous = local.get(remote.notification_id)
            is_read = self._pending_reads.resolve(
                remote.notification_id,
                previous.is_read if previous else None,
                remote.is_read,
            )
            merged.append(remote if is_read == remote.is_read else remote.mark_read())
        self.notifications = merged
        self.unread_count = sum(1 for record in merged if not record.is_read)
        self.server_unread_count = feed.unread_count
        if self.debug:
            _logger.info(
                "Merged %s %s notifications (unread=%s, pending=%s)",
                len(merged),
                self.audience,
                self.unread_count,
                len(self.pending_read_ids),
            )

    async def mark_as_read(self, notification_id: int) -> None:
        """Mark one notification read locally, then on the server."""
        current = self._find(notification_id)
        if current is not None and current.is_read:
            return
        version = self._pending_reads.record(notification_id, True)
        if current is not None:
            self.notifications = [
                record.mark_read() if record.notification_id == notification_id else record
                for record in self.notifications
            ]
            self.unread_count = max(0, self.unread_count - 1)
        try:
            await self.client.mark_read(notification_id)
        except Exception:
            _logger.exception("Failed to mark notification %s as read", notification_id)
            self._pending_reads.rollback(notification_id, version)
            await self.refresh()
            raise
        self._schedule_refresh(self.mark_read_refresh_delay)

    async def mark_all_as_read(self) -> None:
        """Mark everything read locally, send one bulk write, then re-poll."""
        if self.owner_id is None:
            return
        self.notifications = [record.mark_read() for record in self.notifications]
        self.unread_count = 0
        try:
            await self.client.mark_all_read(self.owner_id)
        except Exception:
            _logger.exception("Failed to mark all %s notifications as read", self.audience)
            await self.refresh()
            raise
        await self.refresh()

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.refresh()
            except SessionExpiredError:
                self._expire()
                return
            await asyncio.sleep(self.poll_interval)

    def _schedule_refresh(self, delay: float) -> None:
        task = asyncio.get_running_loop().create_task(self._delayed_refresh(delay))
        self._follow_ups.add(task)
        task.add_done_callback(self._follow_ups.discard)

    async def _delayed_refresh(self, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self.refresh()
        except SessionExpiredError:
            self._expire()

    def _expire(self) -> None:
        _logger.warning("Notification polling stopped: session expired")
        if self.on_session_expired is not None:
            self.on_session_expired()

    def _find(self, notification_id: int) -> NotificationRecord | None:
        for record in self.notifications:
            if record.notification_id == notification_id:
                return record
        return None

    def _reset(self) -> None:
        self.notifications = []
        self.unread_count = 0
        self.server_unread_count = None
        self._pending_reads.clear()
