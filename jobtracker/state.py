"""
In-memory application state for one user session.

ApplicationState is the single source of truth for "applications visible to
the current user". It loads the list when a session is established, applies
add/update/delete through the store and, after each successful change,
publishes a new immutable snapshot to subscribers.

Store failures never escape: they are logged and queued as one-shot
notifications, and local state is left exactly as it was.
"""
import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Deque, List, Optional, Tuple
import logging

from starlette.concurrency import run_in_threadpool

from .export import CsvExport, build_export
from .schemas import JobApplication, JobApplicationFields, JobApplicationPatch
from .store import ApplicationStore, RecordNotFound, StoreError

logger = logging.getLogger("jobtracker.state")

Snapshot = Tuple[JobApplication, ...]
Listener = Callable[[Snapshot], None]

LOAD_FAILED = "Failed to load applications"


@dataclass(frozen=True)
class Notification:
    """A user-visible message, delivered once."""
    level: str
    message: str


def _bumped(previous: datetime, stored: datetime) -> datetime:
    if stored > previous:
        return stored
    return previous + timedelta(microseconds=1)


class ApplicationState:
    """
    Session-scoped list of applications kept in sync with the store.

    Usage:
        state = ApplicationState(ApplicationStore())
        await state.establish_session(user.id)
        record = await state.add(fields)
        unsubscribe = state.subscribe(lambda snapshot: ...)
    """

    def __init__(self, store: ApplicationStore):
        self._store = store
        self._user_id: Optional[int] = None
        self._snapshot: Snapshot = ()
        self._listeners: List[Listener] = []
        self._notifications: Deque[Notification] = deque()
        # Bumped whenever the session changes; responses from an older generation are dropped
        self._generation = 0
        self._load_finished: Optional[asyncio.Event] = None
        self.is_loading = False
        self.loaded = False

    # -------------------------------------------------------------------------
    # Snapshot access & subscriptions
    # -------------------------------------------------------------------------

    @property
    def user_id(self) -> Optional[int]:
        return self._user_id

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def get(self, application_id: str) -> Optional[JobApplication]:
        return next((app for app in self._snapshot if app.id == application_id), None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for new snapshots. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, applications) -> None:
        self._snapshot = tuple(applications)
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception:
                logger.exception("Snapshot listener failed")

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def _notify(self, message: str, level: str = "error") -> None:
        notice = Notification(level=level, message=message)
        # A repeated failure is reported once until it is read
        if notice not in self._notifications:
            self._notifications.append(notice)

    def _forget(self, message: str) -> None:
        self._notifications = deque(n for n in self._notifications if n.message != message)

    def drain_notifications(self) -> List[Notification]:
        """Return pending notifications and forget them."""
        pending = list(self._notifications)
        self._notifications.clear()
        return pending

    def pop_notification(self) -> Optional[Notification]:
        """Take only the newest notification, leaving older ones queued."""
        return self._notifications.pop() if self._notifications else None

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    async def establish_session(self, user_id: int) -> None:
        """
        Bind the state to a user and load their applications.

        Any previous list is cleared first so nothing from another identity
        is ever visible. On failure the list stays empty and an error
        notification is queued. Mutations issued while the load is in
        flight wait for it, so they apply on top of the loaded list.
        """
        self._generation += 1
        generation = self._generation
        self._user_id = user_id
        self.loaded = False
        self._publish(())
        self.is_loading = True
        finished = self._load_finished = asyncio.Event()

        try:
            records = await run_in_threadpool(self._store.list, user_id)
        except StoreError as e:
            if generation == self._generation:
                self.is_loading = False
                logger.error(f"Could not load applications for user {user_id}: {e}")
                self._notify(LOAD_FAILED)
            return
        finally:
            finished.set()

        if generation != self._generation:
            logger.debug(f"Discarding stale load for user {user_id}")
            return

        self.is_loading = False
        self.loaded = True
        self._forget(LOAD_FAILED)
        self._publish(records)

    async def wait_until_loaded(self) -> None:
        """Return once no load is in flight."""
        if self._load_finished is not None:
            await self._load_finished.wait()

    def end_session(self) -> None:
        """Drop the list immediately (sign-out or lost auth)."""
        self._generation += 1
        self._user_id = None
        self.is_loading = False
        self.loaded = False
        if self._load_finished is not None:
            self._load_finished.set()
        self._notifications.clear()
        self._publish(())

    async def _active_session(self, operation: str) -> Optional[int]:
        await self.wait_until_loaded()
        if self._user_id is None:
            logger.warning(f"Ignoring {operation}: no active session")
        return self._user_id

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add(self, fields: JobApplicationFields) -> Optional[JobApplication]:
        """
        Create an application and prepend it to the list.

        Returns:
            The stored record, or None if the store call failed
        """
        user_id = await self._active_session("add")
        if user_id is None:
            return None
        generation = self._generation

        try:
            record = await run_in_threadpool(self._store.create, user_id, fields)
        except StoreError as e:
            logger.error(f"Failed to add application: {e}")
            self._notify("Failed to add application")
            return None

        if generation != self._generation:
            logger.debug(f"Discarding add result for ended session (user {user_id})")
            return None

        self._publish((record,) + self._snapshot)
        return record

    async def update(self, application_id: str, patch: JobApplicationPatch) -> bool:
        """
        Apply a partial update and merge it into the local record.

        Returns:
            True if the store accepted the update
        """
        user_id = await self._active_session("update")
        if user_id is None:
            return False
        generation = self._generation

        try:
            stored_at = await run_in_threadpool(
                self._store.update, user_id, application_id, patch
            )
        except StoreError as e:
            logger.error(f"Failed to update application {application_id}: {e}")
            self._notify("Failed to update application")
            return False

        if generation != self._generation:
            logger.debug(f"Discarding update result for ended session (user {user_id})")
            return False

        changes = patch.changes()
        self._publish(
            app.model_copy(update={**changes, "updated_at": _bumped(app.updated_at, stored_at)})
            if app.id == application_id else app
            for app in self._snapshot
        )
        return True

    async def delete(self, application_id: str) -> bool:
        """
        Delete an application.

        Deleting something that is already gone counts as success.
        """
        user_id = await self._active_session("delete")
        if user_id is None:
            return False
        generation = self._generation

        try:
            await run_in_threadpool(self._store.delete, user_id, application_id)
        except RecordNotFound:
            logger.info(f"Application {application_id} already deleted")
        except StoreError as e:
            logger.error(f"Failed to delete application {application_id}: {e}")
            self._notify("Failed to delete application")
            return False

        if generation != self._generation:
            return False

        self._publish(app for app in self._snapshot if app.id != application_id)
        return True

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export_csv(self, today: Optional[date] = None) -> CsvExport:
        """Serialize the current local list, in its current order."""
        return build_export(self._snapshot, today)
