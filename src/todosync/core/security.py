"""Identity credential helpers.

Callers present ``Authorization: Bearer <credential>``. The credential is a
signed JWT whose ``sub`` claim names the external identity (the subject issued
by the sign-in provider). Two escape hatches exist for local work:

* in the ``development`` environment the literal mock identity is accepted as
  a credential on its own;
* when ``mock_auth_enabled`` is set (test/E2E mode) a missing credential also
  resolves to the mock identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from .config import Settings

BEARER_PREFIX = "bearer "


class CredentialError(Exception):
    """Raised when a credential is missing or cannot be verified."""


@dataclass(slots=True, frozen=True)
class Identity:
    """Resolved caller identity."""

    subject: str
    email: str | None = None
    name: str | None = None
    is_mock: bool = False


def create_identity_token(
    *,
    subject: str,
    settings: Settings,
    email: str | None = None,
    name: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed identity credential for ``subject``."""

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": subject,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=12)),
    }
    if email is not None:
        payload["email"] = email
    if name is not None:
        payload["name"] = name
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def extract_bearer(header_value: str | None) -> str | None:
    """Return the credential part of an ``Authorization`` header."""

    if not header_value:
        return None
    value = header_value.strip()
    if value.lower().startswith(BEARER_PREFIX):
        value = value[len(BEARER_PREFIX) :].strip()
    return value or None


def _mock_identity(settings: Settings) -> Identity:
    return Identity(
        subject=settings.mock_identity,
        email="test@example.com",
        name="Test User",
        is_mock=True,
    )


def resolve_identity(credential: str | None, settings: Settings) -> Identity:
    """Resolve a caller identity from a raw bearer credential."""

    if credential is None or credential == settings.mock_identity:
        mock_allowed = settings.mock_auth_enabled or (
            credential is not None and settings.environment == "development"
        )
        if mock_allowed:
            return _mock_identity(settings)
        raise CredentialError("Authentication required.")

    try:
        payload = jwt.decode(credential, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise CredentialError("Invalid credential.") from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise CredentialError("Credential is missing a subject.")
    return Identity(subject=subject, email=payload.get("email"), name=payload.get("name"))


__all__ = [
    "CredentialError",
    "Identity",
    "create_identity_token",
    "extract_bearer",
    "resolve_identity",
]
