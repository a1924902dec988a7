"""
Firebase initialization.
Single-source-of-truth Firestore client and Storage bucket for City Reporter.

The client is created once at application startup (``initialize_firestore``)
and released at shutdown (``close_firestore``). Services receive the client
as a constructor argument; ``get_db`` / ``get_bucket`` are only used when
building them.
"""

import json
import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, storage

from city_reporter.core.settings import settings

logger = logging.getLogger(__name__)

db: Optional[firestore.Client] = None
_app: Optional[firebase_admin.App] = None


def _load_credentials(cred_path: str) -> credentials.Certificate:
    if not os.path.exists(cred_path):
        raise FileNotFoundError(
            f"Firebase credentials file not found: {cred_path}\n"
            f"Check FIREBASE_CREDENTIALS_PATH in your .env file."
        )

    with open(cred_path, "r") as f:
        try:
            cred_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Firebase credentials file is not valid JSON: {e}")

    required_fields = ["type", "project_id", "private_key", "client_email"]
    missing_fields = [field for field in required_fields if field not in cred_data]
    if missing_fields:
        raise ValueError(f"Firebase credentials file is missing required fields: {missing_fields}")

    logger.info(f"[FIREBASE] Credentials file validated for project {cred_data.get('project_id')}")
    return credentials.Certificate(cred_path)


def initialize_firestore() -> firestore.Client:
    global db, _app

    if db is not None:
        return db

    options = {}
    if settings.FIREBASE_STORAGE_BUCKET:
        options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID

    try:
        if not firebase_admin._apps:
            if settings.FIREBASE_CREDENTIALS_PATH:
                cred = _load_credentials(settings.FIREBASE_CREDENTIALS_PATH)
                _app = firebase_admin.initialize_app(cred, options or None)
                logger.info("[FIREBASE] Admin SDK initialized with service account")
            else:
                logger.info("[FIREBASE] No credentials path set, using Application Default Credentials")
                _app = firebase_admin.initialize_app(options=options or None)
        else:
            _app = firebase_admin.get_app()

        db = firestore.client(_app)
        logger.info(f"[FIRESTORE] Connected (project: {settings.FIREBASE_PROJECT_ID or 'default'})")
        return db

    except (FileNotFoundError, ValueError) as e:
        raise RuntimeError(f"Firestore initialization FAILED - invalid credentials.\n{e}") from e
    except Exception as e:
        raise RuntimeError(
            f"Firestore initialization FAILED. Error: {e}\n"
            f"Please check your Firebase credentials and configuration."
        ) from e


def get_db() -> firestore.Client:
    """
    Get the initialized Firestore client.

    Raises RuntimeError if Firestore has not been initialized and cannot be.
    """
    if db is None:
        initialize_firestore()
    return db


def get_bucket():
    """Default Cloud Storage bucket of the initialized Firebase app."""
    if _app is None:
        initialize_firestore()
    return storage.bucket(app=_app)


def close_firestore() -> None:
    global db, _app

    if db is not None:
        db.close()
        db = None
    if _app is not None:
        firebase_admin.delete_app(_app)
        _app = None
    logger.info("[FIREBASE] Connections closed")
