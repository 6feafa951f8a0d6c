"""
Firebase initialization and Firestore helpers.
"""
import json
import logging
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from api.common.config import FIREBASE_CREDENTIALS_JSON_CONTENT, FIREBASE_CREDENTIALS_FILE

logger = logging.getLogger(__name__)


def init_firebase():
    """
    Initialize the default Firebase app once.

    Credentials come from FIREBASE_CREDENTIALS_JSON_CONTENT when set,
    otherwise from the local service account file.
    """
    if firebase_admin._apps:
        return firebase_admin.get_app()

    if FIREBASE_CREDENTIALS_JSON_CONTENT:
        try:
            cred = credentials.Certificate(json.loads(FIREBASE_CREDENTIALS_JSON_CONTENT))
        except json.JSONDecodeError as e:
            logger.critical("FIREBASE_CREDENTIALS_JSON_CONTENT contains invalid JSON: %s", e)
            raise
        logger.info("Initialized Firebase from FIREBASE_CREDENTIALS_JSON_CONTENT env var.")
    else:
        try:
            cred = credentials.Certificate(FIREBASE_CREDENTIALS_FILE)
        except FileNotFoundError:
            logger.critical("Local credentials file '%s' not found.", FIREBASE_CREDENTIALS_FILE)
            raise
        logger.info("Initialized Firebase from local JSON file: %s", FIREBASE_CREDENTIALS_FILE)

    return firebase_admin.initialize_app(cred)


def get_firestore_client():
    return firestore.client()


def snapshot_to_dict(doc) -> Optional[Dict[str, Any]]:
    """Return the document data with its id, or None for a missing document."""
    data = doc.to_dict()
    if data is None:
        return None
    data['id'] = doc.id
    return data
