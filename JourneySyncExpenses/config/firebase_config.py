"""
Firebase Configuration Module

Initializes the Firebase Admin SDK and exposes a shared Firestore client.

Environment (read from the process or a local .env file):
    FIREBASE_CREDENTIALS - path to the service account JSON file
    FIREBASE_PROJECT_ID  - optional project override
    LOG_LEVEL            - logging level used by main.py (default INFO)

Functions:
    get_db: Return the Firestore client, or None if Firebase is not configured.
"""

import logging
import os
from typing import Optional

import firebase_admin
from dotenv import load_dotenv
from firebase_admin import credentials, firestore

load_dotenv()

logger = logging.getLogger(__name__)

_db = None


def get_log_level() -> str:
    """Return the configured log level name."""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def _init_app() -> Optional[firebase_admin.App]:
    """
    Initialize the default Firebase app once.

    Returns:
        firebase_admin.App or None if no credentials are configured.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    cred_path = os.getenv("FIREBASE_CREDENTIALS")
    if not cred_path or not os.path.exists(cred_path):
        logger.warning("FIREBASE_CREDENTIALS not set or missing, Firestore disabled")
        return None

    options = {}
    project_id = os.getenv("FIREBASE_PROJECT_ID")
    if project_id:
        options["projectId"] = project_id

    cred = credentials.Certificate(cred_path)
    return firebase_admin.initialize_app(cred, options or None)


def get_db():
    """
    Get the shared Firestore client.

    Returns:
        google.cloud.firestore.Client or None if Firebase is unavailable.
    """
    global _db
    if _db is not None:
        return _db

    app = _init_app()
    if app is None:
        return None

    _db = firestore.client(app)
    logger.info("Connected to Firestore project %s", app.project_id)
    return _db
