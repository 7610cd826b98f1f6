"""Firebase Admin app shared by token verification and FCM."""
import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials

from rollcall.config import settings

logger = logging.getLogger(__name__)

_firebase_app = None


def get_firebase_app() -> Optional[firebase_admin.App]:
    global _firebase_app
    if _firebase_app is not None:
        return _firebase_app

    try:
        cred = credentials.Certificate(settings.firebase_credentials_path)
        options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
        _firebase_app = firebase_admin.initialize_app(cred, options)
        return _firebase_app
    except (ValueError, OSError) as e:
        logger.error(f"Failed to initialize Firebase app: {e}")
        return None


def verify_id_token(token: str) -> dict:
    """Decoded claims of a Firebase ID token.

    Raises RuntimeError when Firebase is not available, and ValueError or a
    ``firebase_admin.exceptions.FirebaseError`` when the token is rejected.
    """
    app = get_firebase_app()
    if app is None:
        raise RuntimeError("Firebase is not configured")
    return auth.verify_id_token(token, app=app)
