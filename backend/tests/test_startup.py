from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tourbook import config
from tourbook.main import app


@pytest.mark.parametrize("secret", ["", "too-short"])
def test_weak_secret_is_rejected(monkeypatch, secret):
    monkeypatch.setattr(config, "SECRET_KEY", secret)
    with pytest.raises(RuntimeError, match="SECRET_KEY"):
        config.validate_security_settings()


def test_out_of_range_bcrypt_rounds_are_rejected(monkeypatch):
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 3)
    with pytest.raises(RuntimeError, match="BCRYPT_ROUNDS"):
        config.validate_security_settings()


def test_app_refuses_to_start_without_a_secret(monkeypatch):
    monkeypatch.setattr(config, "SECRET_KEY", "")
    with pytest.raises(RuntimeError):
        with TestClient(app):
            pass


def test_configured_secret_passes():
    config.validate_security_settings()
