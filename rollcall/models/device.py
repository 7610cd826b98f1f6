from datetime import datetime
from beanie import Document, Indexed
from pydantic import BaseModel, Field


class DeviceToken(Document):
    """FCM registration tokens of one signed-in user."""
    uid: Indexed(str, unique=True)
    tokens: list[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "device_tokens"
        use_state_management = True


class DeviceTokenRequest(BaseModel):
    token: str
