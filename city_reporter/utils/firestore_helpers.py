"""
Firestore helpers shared by the services.

NOTE: For firebase_admin SDK, we use positional arguments in ``where`` which
still work. The deprecation warning is just a warning.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from firebase_admin import firestore
from google.api_core import exceptions as gcloud_exceptions

from city_reporter.core.exceptions import PersistenceError


def where_filter(query, field_path: str, op_string: str, value):
    """
    Usage:
        query = where_filter(collection, "location.city", "==", "Colombo")
        query = where_filter(query, "status", "==", "submitted")
    """
    return query.where(field_path, op_string, value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def snapshot_to_dict(doc) -> Optional[Dict]:
    """Document snapshot -> plain dict carrying its ``id``, or None if missing."""
    if not doc.exists:
        return None
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def run_in_transaction(db, callback: Callable):
    """
    Run ``callback(transaction)`` inside a Firestore transaction.

    Reads made through ``transaction`` are re-checked at commit; the SDK
    retries the callback when another writer got there first.
    """
    return firestore.transactional(callback)(db.transaction())


@contextmanager
def firestore_errors(operation: str):
    """
    Translate Google API failures into PersistenceError.

    The underlying message is kept on ``__cause__`` for logs only.
    """
    try:
        yield
    except gcloud_exceptions.GoogleAPIError as e:
        raise PersistenceError(f"Database operation failed: {operation}") from e
