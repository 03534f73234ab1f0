"""
Workday store adapter.
Keeps the session's local profile in sync with the user's remote
document using optimistic updates: change locally, write, and restore
the snapshot if the write fails.

Writes are last-writer-wins. Two quick edits of the same field race at
the database and may land in either order.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict

from supabase import Client

import db
from calc import WorkdayEntry, day_key
from config import DEFAULT_DAILY_RATE
from errors import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)


@dataclass
class ProfileState:
    """Local copy of the user's document, owned by the view."""

    daily_rate: float = DEFAULT_DAILY_RATE
    workdays: Dict[str, Any] = field(default_factory=dict)
    loaded: bool = False


def apply_optimistically(state: Any, attr: str, value: Any, write: Callable[[], None]) -> None:
    """
    Set state.attr to value, then run the remote write.

    If the write raises anything, the previous value is restored and the
    exception is re-raised for the caller to report.
    """
    snapshot = getattr(state, attr)
    setattr(state, attr, value)
    try:
        write()
    except Exception:
        setattr(state, attr, snapshot)
        logger.warning("Rolled back %s after failed write", attr)
        raise


class WorkdayStore:
    def __init__(self, client: Client, state: ProfileState):
        self.client = client
        self.state = state

    def load_profile(self, user_id: str) -> ProfileState:
        """
        Load the user's document into local state, creating it on first use.

        Raises:
            StoreReadError: local state is left untouched
        """
        document = db.fetch_document(self.client, user_id)
        if document is None:
            db.create_document(self.client, user_id, DEFAULT_DAILY_RATE)
            document = {"daily_rate": DEFAULT_DAILY_RATE, "workdays": {}}
        elif document.get("daily_rate") is None:
            logger.info("Backfilling daily rate for %s", user_id)
            try:
                db.update_daily_rate(self.client, user_id, DEFAULT_DAILY_RATE)
            except StoreWriteError as e:
                raise StoreReadError(user_id, e.message) from e
            document["daily_rate"] = DEFAULT_DAILY_RATE

        self.state.daily_rate = document["daily_rate"]
        self.state.workdays = dict(document["workdays"])
        self.state.loaded = True
        return self.state

    def set_daily_rate(self, user_id: str, rate: float) -> None:
        if rate < 0:
            raise ValueError(f"daily rate must be >= 0, got {rate}")
        apply_optimistically(
            self.state,
            "daily_rate",
            rate,
            lambda: db.update_daily_rate(self.client, user_id, rate),
        )

    def mark_day(self, user_id: str, day_date: date, entry: WorkdayEntry) -> None:
        key = day_key(day_date)
        document = entry.to_document()
        apply_optimistically(
            self.state,
            "workdays",
            {**self.state.workdays, key: document},
            lambda: db.merge_workday(self.client, user_id, key, document),
        )

    def unmark_day(self, user_id: str, day_date: date) -> None:
        key = day_key(day_date)
        remaining = {k: v for k, v in self.state.workdays.items() if k != key}
        apply_optimistically(
            self.state,
            "workdays",
            remaining,
            lambda: db.delete_workday(self.client, user_id, key),
        )
