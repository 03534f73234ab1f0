"""
Database helpers for Supabase integration.
One logical document per user: a `profiles` row holding the default
daily rate plus one `workdays` row per marked date.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from supabase import Client, PostgrestAPIError

from errors import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

PROFILES_TABLE = "profiles"
WORKDAYS_TABLE = "workdays"

# PostgREST caps responses at 1000 rows by default
PAGE_SIZE = 1000

STORE_ERRORS = (PostgrestAPIError, httpx.HTTPError)


def _describe(exc: BaseException) -> str:
    return getattr(exc, "message", None) or str(exc) or exc.__class__.__name__


def _fetch_workday_rows(client: Client, user_id: str) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    start = 0
    while True:
        page = (
            client
            .table(WORKDAYS_TABLE)
            .select("day, entry")
            .eq("user_id", user_id)
            .order("day")
            .range(start, start + PAGE_SIZE - 1)
            .execute()
        ).data or []
        rows.extend(page)
        if len(page) < PAGE_SIZE:
            return rows
        start += PAGE_SIZE


def fetch_document(client: Client, user_id: str) -> Optional[Dict[str, Any]]:
    """
    Fetch the user's whole document.

    Args:
        client: Authenticated Supabase client
        user_id: Auth user id

    Returns:
        {"daily_rate": number | None, "workdays": {iso_date: entry}} or None
        if the user has no profile yet
    """
    try:
        result = (
            client
            .table(PROFILES_TABLE)
            .select("user_id, daily_rate")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        workdays = {str(row["day"])[:10]: row["entry"] for row in _fetch_workday_rows(client, user_id)}
    except STORE_ERRORS as e:
        logger.error("Reading document for %s failed: %s", user_id, _describe(e))
        raise StoreReadError(user_id, "Could not reach the database. Check your connection.") from e

    return {"daily_rate": result.data[0].get("daily_rate"), "workdays": workdays}


def create_document(client: Client, user_id: str, daily_rate: float) -> None:
    """Create the profile row with defaults; a new user has no workdays."""
    try:
        client.table(PROFILES_TABLE).insert({"user_id": user_id, "daily_rate": daily_rate}).execute()
    except STORE_ERRORS as e:
        logger.error("Creating document for %s failed: %s", user_id, _describe(e))
        raise StoreReadError(user_id, "Could not create your profile.") from e
    logger.info("Created profile for %s with daily rate %s", user_id, daily_rate)


def update_daily_rate(client: Client, user_id: str, daily_rate: float) -> None:
    """Merge-update the default daily rate."""
    try:
        (
            client
            .table(PROFILES_TABLE)
            .upsert({"user_id": user_id, "daily_rate": daily_rate}, on_conflict="user_id")
            .execute()
        )
    except STORE_ERRORS as e:
        logger.error("Updating daily rate for %s failed: %s", user_id, _describe(e))
        raise StoreWriteError(user_id, "daily_rate", "Could not update the daily rate.") from e


def merge_workday(client: Client, user_id: str, key: str, entry: Dict[str, Any]) -> None:
    """
    Write a single workday, leaving every other date untouched.

    Args:
        client: Authenticated Supabase client
        user_id: Auth user id
        key: ISO date
        entry: Structured entry document
    """
    try:
        (
            client
            .table(WORKDAYS_TABLE)
            .upsert({"user_id": user_id, "day": key, "entry": entry}, on_conflict="user_id,day")
            .execute()
        )
    except STORE_ERRORS as e:
        logger.error("Saving workday %s for %s failed: %s", key, user_id, _describe(e))
        raise StoreWriteError(user_id, f"workdays.{key}", "Could not save the day. Check your connection.") from e


def delete_workday(client: Client, user_id: str, key: str) -> None:
    """Remove a single workday."""
    try:
        client.table(WORKDAYS_TABLE).delete().eq("user_id", user_id).eq("day", key).execute()
    except STORE_ERRORS as e:
        logger.error("Removing workday %s for %s failed: %s", key, user_id, _describe(e))
        raise StoreWriteError(user_id, f"workdays.{key}", "Could not remove the mark. Check your connection.") from e
