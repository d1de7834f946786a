from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone

from tourbook.auth.reset_tokens import RESET_TOKEN_BYTES, generate_reset_token, hash_reset_token
from tourbook.config import RESET_TOKEN_EXPIRE_MINUTES


def test_generated_token_is_random_hex_with_sha256_hash():
    token = generate_reset_token()

    assert len(token.plaintext) == RESET_TOKEN_BYTES * 2
    int(token.plaintext, 16)
    assert token.token_hash == hashlib.sha256(token.plaintext.encode()).hexdigest()
    assert token.token_hash != token.plaintext


def test_tokens_do_not_repeat():
    tokens = {generate_reset_token().plaintext for _ in range(50)}
    assert len(tokens) == 50


def test_expiry_is_ten_minutes_after_issue():
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    token = generate_reset_token(now=now)

    assert RESET_TOKEN_EXPIRE_MINUTES == 10
    assert token.expires_at == now + timedelta(minutes=10)


def test_hash_is_deterministic():
    assert hash_reset_token("abc") == hash_reset_token("abc")
    assert hash_reset_token("abc") != hash_reset_token("abd")


def test_repr_never_shows_plaintext():
    token = generate_reset_token()
    assert token.plaintext not in repr(token)
