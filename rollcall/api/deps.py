"""Shared dependencies: Firebase ID-token auth for HTTP and WebSocket routes."""
import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin.exceptions import FirebaseError
from pydantic import BaseModel

from rollcall.services.firebase import verify_id_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

SIGN_IN_REQUIRED = "You must sign-in first"


class SessionUser(BaseModel):
    uid: str
    name: Optional[str] = None
    email: Optional[str] = None
    picture: Optional[str] = None


async def user_from_token(token: str) -> SessionUser:
    try:
        # Verification may fetch Google's signing keys; keep it off the event loop
        claims = await run_in_threadpool(verify_id_token, token)
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Sign-in is temporarily unavailable")
    except (ValueError, FirebaseError):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        raise HTTPException(status_code=401, detail="Invalid token")
    return SessionUser(
        uid=uid,
        name=claims.get("name"),
        email=claims.get("email"),
        picture=claims.get("picture"),
    )


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> SessionUser:
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=SIGN_IN_REQUIRED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await user_from_token(credentials.credentials)


async def get_ws_user(token: Annotated[Optional[str], Query()] = None) -> Optional[SessionUser]:
    """Signed-in user of a WebSocket (``?token=``), or None when anonymous or rejected."""
    if not token:
        return None
    try:
        return await user_from_token(token)
    except HTTPException as e:
        logger.info("Rejected live feed token: %s", e.detail)
        return None


# Type aliases for route injection
CurrentUser = Annotated[SessionUser, Depends(get_current_user)]
WebSocketUser = Annotated[Optional[SessionUser], Depends(get_ws_user)]
