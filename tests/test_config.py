"""
Tests for settings loading and the SMTP mailer.
"""

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError as SettingsError

from realty_api.config import Settings
from realty_api.services.mailer import Mailer

REQUIRED = {
    "database_url": "sqlite+aiosqlite:///:memory:",
    "jwt_secret_key": "secret",
    "redis_host": "localhost",
}


def make_settings(**overrides) -> Settings:
    values = {**REQUIRED, **overrides}
    return Settings(_env_file=None, **values)


class TestSettings:

    @pytest.mark.parametrize("missing", ["DATABASE_URL", "JWT_SECRET_KEY", "REDIS_HOST"])
    def test_missing_required_setting_fails(self, monkeypatch, missing):
        monkeypatch.delenv(missing, raising=False)
        values = {k: v for k, v in REQUIRED.items() if k.upper() != missing}

        with pytest.raises(SettingsError):
            Settings(_env_file=None, **values)

    def test_postgres_url_gets_async_driver(self):
        settings = make_settings(database_url="postgres://user:pw@db:5432/realty")
        assert settings.database_url == "postgresql+asyncpg://user:pw@db:5432/realty"

    def test_redis_url(self):
        assert make_settings(redis_port=6380).redis_url == "redis://localhost:6380/0"
        assert make_settings(redis_password="pw").redis_url == "redis://:pw@localhost:6379/0"

    def test_unknown_environment_rejected(self):
        with pytest.raises(SettingsError):
            make_settings(environment="qa")

    def test_optional_features_degrade(self, caplog, monkeypatch):
        for name in ("CLOUDINARY_CLOUD_NAME", "EMAIL_HOST", "EMAIL_USER", "EMAIL_PASSWORD", "GOOGLE_MAPS_API_KEY",
                     "FIREBASE_PROJECT_ID", "FIREBASE_CLIENT_EMAIL", "FIREBASE_PRIVATE_KEY"):
            monkeypatch.delenv(name, raising=False)
        settings = make_settings(email_host="smtp.example.com", email_user="bot@example.com", email_password="pw")

        missing = settings.log_degraded_features()

        assert settings.optional_features()["email"] is True
        assert missing == ["media_storage", "push_notifications", "maps"]
        assert "Cloudinary credentials missing" in caplog.text


class TestMailer:

    def test_message_has_both_parts(self):
        mailer = Mailer(make_settings(email_user="bot@example.com"))

        message = mailer.build_message("buyer@example.com", "Hello", text="plain", html="<p>html</p>")

        assert message["From"] == "bot@example.com"
        assert [part.get_content_type() for part in message.get_payload()] == ["text/plain", "text/html"]

    @pytest.mark.asyncio
    async def test_unconfigured_mailer_refuses_to_send(self):
        mailer = Mailer(make_settings())

        assert mailer.configured is False
        with pytest.raises(RuntimeError):
            await mailer.send("buyer@example.com", "Hello", text="Hi")

    @pytest.mark.asyncio
    async def test_send_uses_smtp_settings(self):
        mailer = Mailer(make_settings(
            email_host="smtp.example.com", email_port=2525, email_user="bot@example.com", email_password="pw"
        ))

        with patch("aiosmtplib.send", new_callable=AsyncMock) as send:
            await mailer.send("buyer@example.com", "Hello", text="Hi")

        kwargs = send.await_args.kwargs
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["port"] == 2525
        assert kwargs["username"] == "bot@example.com"
        assert send.await_args.args[0]["To"] == "buyer@example.com"
