"""Application configuration using Pydantic Settings."""
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_name: str = "Rollcall"
    debug: bool = False
    log_level: str = "INFO"
    display_timezone: str = "UTC"  # timezone used for the "recorded at" column
    profile_placeholder_url: str = "/static/images/profile_placeholder.svg"

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "rollcall"

    # Firebase: service account for token verification and FCM
    firebase_credentials_path: str = ""
    # Firebase: web app config handed to the browser SDK for sign-in
    firebase_api_key: str = ""
    firebase_auth_domain: str = ""
    firebase_project_id: str = ""
    firebase_storage_bucket: str = ""
    firebase_messaging_sender_id: str = ""
    firebase_app_id: str = ""
    # Firebase: Web Push certificate key; browsers register for FCM only when set
    firebase_vapid_key: str = ""

    # FCM
    fcm_enabled: bool = True
    fcm_max_tokens_per_user: int = 5

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:8000"

    @model_validator(mode="after")
    def _validate_firebase_config(self):
        if not self.firebase_credentials_path or not self.firebase_api_key:
            raise ValueError(
                "No Firebase configuration provided. "
                "Set FIREBASE_CREDENTIALS_PATH (service account JSON) and FIREBASE_API_KEY "
                "(web app config) in the environment or .env file."
            )
        return self

    def firebase_web_config(self) -> dict:
        """Config object for the browser Firebase SDK."""
        return {
            "apiKey": self.firebase_api_key,
            "authDomain": self.firebase_auth_domain,
            "projectId": self.firebase_project_id,
            "storageBucket": self.firebase_storage_bucket,
            "messagingSenderId": self.firebase_messaging_sender_id,
            "appId": self.firebase_app_id,
        }


settings = Settings()
