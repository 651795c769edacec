"""Google ID token verification for SSO sign-in.

The client obtains an ID token from Google Identity Services and posts it
to /auth/sign with type "sso".  We verify the RS256 signature against
Google's published JWKS, the audience (our OAuth client id) and the
issuer, then sign the matching local account in by email.
"""

from __future__ import annotations

from dataclasses import dataclass

import jwt

from marketplace.core.config import SETTINGS

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("https://accounts.google.com", "accounts.google.com")

# PyJWKClient caches the fetched key set between calls.
_jwks_client = jwt.PyJWKClient(GOOGLE_CERTS_URL)


class SsoNotConfiguredError(Exception):
    """Raised when GOOGLE_CLIENT_ID is unset."""


@dataclass(frozen=True, slots=True)
class GoogleIdentity:
    sub: str
    email: str
    name: str | None = None
    picture: str | None = None


def verify_id_token(token: str, *, client_id: str | None = None) -> GoogleIdentity:
    """Verify a Google ID token and return the identity it asserts.

    Blocking: the first call (and key rotation) fetches Google's JWKS.
    Raises jwt.PyJWTError for any invalid token or key-fetch failure.
    """
    audience = client_id or SETTINGS.google_client_id
    if not audience:
        raise SsoNotConfiguredError("GOOGLE_CLIENT_ID is not set")

    signing_key = _jwks_client.get_signing_key_from_jwt(token)
    claims = jwt.decode(
        token,
        signing_key.key,
        algorithms=["RS256"],
        audience=audience,
        options={"require": ["sub", "email", "exp", "iss"]},
    )
    if claims["iss"] not in GOOGLE_ISSUERS:
        raise jwt.InvalidIssuerError("Invalid issuer")
    if claims.get("email_verified") is False:
        raise jwt.InvalidTokenError("Google email is not verified")

    return GoogleIdentity(
        sub=str(claims["sub"]),
        email=str(claims["email"]),
        name=claims.get("name"),
        picture=claims.get("picture"),
    )
