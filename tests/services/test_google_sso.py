"""verify_id_token(): signature, audience, issuer and email checks."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from marketplace.services import google_sso

CLIENT_ID = "web-client.apps.googleusercontent.com"

_google_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)


@dataclass
class _SigningKey:
    key: object


class _StaticJwks:
    """Serves one public key, like PyJWKClient after a successful fetch."""

    def __init__(self, public_key) -> None:
        self._key = _SigningKey(public_key)

    def get_signing_key_from_jwt(self, token: str) -> _SigningKey:
        return self._key


@pytest.fixture(autouse=True)
def google_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(google_sso, "_jwks_client", _StaticJwks(_google_key.public_key()))


def _id_token(key=_google_key, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": CLIENT_ID,
        "sub": "1098",
        "email": "ayu@example.com",
        "email_verified": True,
        "name": "Ayu",
        "iat": now,
        "exp": now + 300,
    }
    claims.update(overrides)
    return jwt.encode(claims, key, algorithm="RS256")


def test_valid_token_returns_identity() -> None:
    identity = google_sso.verify_id_token(_id_token(), client_id=CLIENT_ID)
    assert identity == google_sso.GoogleIdentity(
        sub="1098", email="ayu@example.com", name="Ayu"
    )


def test_bare_issuer_is_accepted() -> None:
    token = _id_token(iss="accounts.google.com")
    assert google_sso.verify_id_token(token, client_id=CLIENT_ID).sub == "1098"


def test_wrong_audience_is_rejected() -> None:
    with pytest.raises(jwt.InvalidAudienceError):
        google_sso.verify_id_token(_id_token(aud="someone-else"), client_id=CLIENT_ID)


def test_foreign_issuer_is_rejected() -> None:
    with pytest.raises(jwt.InvalidIssuerError):
        google_sso.verify_id_token(
            _id_token(iss="https://evil.example.com"), client_id=CLIENT_ID
        )


def test_expired_token_is_rejected() -> None:
    with pytest.raises(jwt.ExpiredSignatureError):
        google_sso.verify_id_token(
            _id_token(exp=int(time.time()) - 60), client_id=CLIENT_ID
        )


def test_token_signed_by_another_key_is_rejected() -> None:
    other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    with pytest.raises(jwt.InvalidSignatureError):
        google_sso.verify_id_token(_id_token(key=other), client_id=CLIENT_ID)


def test_unverified_email_is_rejected() -> None:
    with pytest.raises(jwt.InvalidTokenError):
        google_sso.verify_id_token(_id_token(email_verified=False), client_id=CLIENT_ID)


def test_missing_client_id_raises_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        google_sso, "SETTINGS", replace(google_sso.SETTINGS, google_client_id=None)
    )
    with pytest.raises(google_sso.SsoNotConfiguredError):
        google_sso.verify_id_token(_id_token())
