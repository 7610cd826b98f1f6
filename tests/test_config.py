"""Settings: missing Firebase configuration stops startup."""

import pytest
from pydantic import ValidationError

from rollcall.config import Settings


class TestFirebaseConfig:
    def test_missing_credentials_is_fatal(self):
        with pytest.raises(ValidationError, match="No Firebase configuration provided"):
            Settings(firebase_credentials_path="", firebase_api_key="key")

    def test_missing_api_key_is_fatal(self):
        with pytest.raises(ValidationError, match="FIREBASE_API_KEY"):
            Settings(firebase_credentials_path="/tmp/sa.json", firebase_api_key="")

    def test_web_config_for_browser(self):
        config = Settings(
            firebase_credentials_path="/tmp/sa.json",
            firebase_api_key="key",
            firebase_project_id="proj",
            firebase_auth_domain="proj.firebaseapp.com",
        ).firebase_web_config()
        assert config["apiKey"] == "key"
        assert config["projectId"] == "proj"
        assert config["authDomain"] == "proj.firebaseapp.com"

    def test_vapid_key_defaults_to_disabled(self):
        assert Settings(firebase_credentials_path="/tmp/sa.json", firebase_api_key="key").firebase_vapid_key == ""
