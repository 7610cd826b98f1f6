"""Signed-in user profile and device registration (sign-in itself happens in the browser)."""
from fastapi import APIRouter

from rollcall.api.deps import CurrentUser
from rollcall.config import settings
from rollcall.models.device import DeviceTokenRequest
from rollcall.services.fcm import register_device_token
from rollcall.services.rendering import add_size_to_google_profile_pic

router = APIRouter()


@router.get("/me")
async def me(user: CurrentUser):
    return {
        "uid": user.uid,
        "name": user.name,
        "email": user.email,
        "picture": add_size_to_google_profile_pic(user.picture or settings.profile_placeholder_url),
    }


@router.post("/fcm-token")
async def register_fcm_token(req: DeviceTokenRequest, user: CurrentUser):
    tokens = await register_device_token(user.uid, req.token)
    return {"status": "ok", "count": len(tokens)}
