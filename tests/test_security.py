"""
Unit tests for password hashing, JWT handling and log sanitizing.
"""
from datetime import timedelta

import pytest
from jose import JWTError

from app.core.security import hash_password, verify_password, create_access_token, decode_access_token
from app.core.logging_config import sanitize_log_data, mask_email, REDACTED


def test_password_hash_roundtrip():
    hashed = hash_password("testpass123")
    assert hashed != "testpass123"
    assert verify_password("testpass123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("testpass123", None)


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "carla@example.com"}, expires_delta=timedelta(minutes=-1))
    with pytest.raises(JWTError):
        decode_access_token(token)


def test_token_carries_email_only():
    payload = decode_access_token(create_access_token({"sub": "carla@example.com"}))
    assert payload["sub"] == "carla@example.com"
    assert "role" not in payload


def test_sanitize_log_data():
    data = {
        "name": "Jane",
        "email": "jane.doe@example.com",
        "password": "SecurePass123",
        "nested": {"api_key": "sk-123", "items": [{"token": "t"}]},
    }

    sanitized = sanitize_log_data(data)

    assert sanitized["name"] == "Jane"
    assert sanitized["email"] == "j***@example.com"
    assert sanitized["password"] == REDACTED
    assert sanitized["nested"]["api_key"] == REDACTED
    assert sanitized["nested"]["items"][0]["token"] == REDACTED
    # input dict is not modified
    assert data["password"] == "SecurePass123"
    assert mask_email("no-at-sign") == REDACTED
