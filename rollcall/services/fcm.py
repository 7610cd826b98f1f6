"""Firebase Cloud Messaging: device tokens and new-attendance pushes."""
from datetime import datetime
import logging

from fastapi.concurrency import run_in_threadpool
from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError

from rollcall.config import settings
from rollcall.models.attendance import AttendanceOut
from rollcall.models.device import DeviceToken
from rollcall.services.firebase import get_firebase_app

logger = logging.getLogger(__name__)


async def register_device_token(uid: str, token: str) -> list[str]:
    """Remember a device token for a user, keeping only the most recent few."""
    device = await DeviceToken.find_one({"uid": uid})
    if device is None:
        device = DeviceToken(uid=uid, tokens=[token])
        await device.insert()
        return device.tokens

    if token not in device.tokens:
        device.tokens.append(token)
        # Limit tokens per user to prevent bloat
        limit = settings.fcm_max_tokens_per_user
        if len(device.tokens) > limit:
            device.tokens = device.tokens[-limit:]
        device.updated_at = datetime.utcnow()
        await device.save()
    return device.tokens


async def send_attendance_push(entry: AttendanceOut) -> None:
    """Tell every other registered device that attendance was recorded."""
    if not settings.fcm_enabled:
        return
    app = get_firebase_app()
    if not app:
        return

    devices = await DeviceToken.find({"uid": {"$ne": entry.uid}}).to_list()
    tokens = []
    for device in devices:
        tokens.extend(device.tokens)

    if not tokens:
        return

    title = f"Attendance: {entry.subject}"
    body = f"{entry.name} ({entry.rollno}) marked present."

    # Batch send limit is 500
    for i in range(0, len(tokens), 500):
        batch = tokens[i:i+500]
        message = messaging.MulticastMessage(
            notification=messaging.Notification(
                title=title,
                body=body,
            ),
            data={
                "type": "attendance",
                "id": entry.id,
            },
            tokens=batch,
        )
        try:
            response = await run_in_threadpool(messaging.send_each_for_multicast, message, app=app)
            logger.info(f"Sent attendance notification to {response.success_count} devices. Errors: {response.failure_count}")
        except (FirebaseError, ValueError) as e:
            logger.error(f"FCM attendance notification failed: {e}")
