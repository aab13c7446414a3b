"""Tests for app startup checks and bearer token verification modes."""

import inspect
import logging
import time

import jwt
import pytest

from spaceflow.config.settings import settings
from spaceflow.domain.errors import AuthenticationError
from spaceflow.main import create_app
from spaceflow.utils.jwt import JWTValidator


def token(secret="test-secret", sub="USR-1"):
    return jwt.encode({"sub": sub, "exp": int(time.time()) + 600}, secret, algorithm="HS256")


class TestInsecureAuthWarning:
    """Startup logs when bearer tokens can be forged."""

    def test_development_warns(self, monkeypatch, caplog):
        monkeypatch.setattr(settings, "environment", "development")
        with caplog.at_level(logging.WARNING):
            create_app()
        assert "signatures are not verified" in caplog.text

    def test_production_with_default_secret(self, monkeypatch, caplog):
        monkeypatch.setattr(settings, "environment", "production")
        monkeypatch.setattr(settings, "jwt_secret", "change-me")
        with caplog.at_level(logging.WARNING):
            create_app()
        assert "signatures are not verified" not in caplog.text
        assert "JWT_SECRET is still the built-in default" in caplog.text

    def test_production_with_own_secret_is_quiet(self, monkeypatch, caplog):
        monkeypatch.setattr(settings, "environment", "production")
        monkeypatch.setattr(settings, "jwt_secret", "s3cret-from-vault")
        with caplog.at_level(logging.WARNING):
            create_app()
        assert "signatures are not verified" not in caplog.text
        assert "JWT_SECRET" not in caplog.text


class TestSignatureVerification:
    """Production mode rejects tokens signed with another secret."""

    def test_forged_token_rejected(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        monkeypatch.setattr(settings, "jwt_secret", "s3cret-from-vault")
        with pytest.raises(AuthenticationError):
            JWTValidator().get_actor(f"Bearer {token(secret='attacker')}")

    def test_signed_token_accepted(self, monkeypatch):
        monkeypatch.setattr(settings, "environment", "production")
        monkeypatch.setattr(settings, "jwt_secret", "s3cret-from-vault")
        actor = JWTValidator().get_actor(f"Bearer {token(secret='s3cret-from-vault', sub='USR-9')}")
        assert actor.user_id == "USR-9"


class TestRouteConcurrency:
    """Handlers that reach pymongo run in the threadpool, not on the event loop."""

    def test_blocking_handlers_are_sync(self):
        app = create_app()
        blocking = [
            route for route in app.routes
            if getattr(route, "path", "").startswith("/api/v1") or getattr(route, "path", "") == "/health"
        ]
        assert len(blocking) >= 6
        for route in blocking:
            assert not inspect.iscoroutinefunction(route.endpoint), route.path
