"""
Access-token verification against the managed auth service.

Tokens are issued by the backend's auth service, never by this API. Two
verification modes:
1. Local: HS256 signature check with the project's JWT secret (python-jose)
2. Remote: GET {supabase_url}/auth/v1/user with the token (asymmetric-key projects)

The service-role key additionally enables the admin user listing used by
the dashboard.
"""

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import httpx
from jose import JWTError, jwt

from marvin.config import Settings
from marvin.errors import AuthError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """The caller, as described by the verified token."""

    id: UUID
    email: str | None = None
    role: str | None = None
    app_metadata: dict[str, Any] = field(default_factory=dict)

    def is_admin(self, admin_emails: list[str]) -> bool:
        """Admins are listed by email or carry role=admin in app_metadata."""
        if self.app_metadata.get("role") == "admin":
            return True
        if self.email is None:
            return False
        return self.email.lower() in {email.lower() for email in admin_emails}


class SupabaseAuth:
    """Verifies access tokens and reads users through the auth admin API."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http = http_client
        self.base_url = settings.supabase_url.rstrip("/") + "/auth/v1"

    async def verify_token(self, token: str) -> AuthenticatedUser:
        """
        Validate an access token and return the user it belongs to.

        Raises:
            AuthError: If the token is invalid, expired or rejected
        """
        if self.settings.supabase_jwt_secret:
            return self.decode_access_token(token)
        return await self.fetch_user(token)

    def decode_access_token(self, token: str) -> AuthenticatedUser:
        """
        Decode and validate a token locally.

        Checks signature, expiry and audience; `sub` must be a UUID.
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.supabase_jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                audience=self.settings.jwt_audience,
            )
            user_id = UUID(payload["sub"])
        except (JWTError, KeyError, ValueError) as e:
            logger.info("Rejected access token: %s", e)
            raise AuthError() from e

        return AuthenticatedUser(
            id=user_id,
            email=payload.get("email"),
            role=payload.get("role"),
            app_metadata=payload.get("app_metadata") or {},
        )

    async def fetch_user(self, token: str) -> AuthenticatedUser:
        """Ask the auth service who the token belongs to."""
        try:
            response = await self.http.get(
                f"{self.base_url}/user",
                headers={
                    "apikey": self.settings.supabase_anon_key,
                    "Authorization": f"Bearer {token}",
                },
            )
        except httpx.HTTPError as e:
            logger.error("Auth service unreachable: %s", e)
            raise UpstreamError() from e

        if response.status_code in (401, 403):
            raise AuthError()
        if response.status_code != 200:
            logger.error("Auth service returned %d", response.status_code)
            raise UpstreamError()

        data = response.json()
        try:
            user_id = UUID(data["id"])
        except (KeyError, ValueError) as e:
            raise AuthError() from e

        return AuthenticatedUser(
            id=user_id,
            email=data.get("email"),
            role=data.get("role"),
            app_metadata=data.get("app_metadata") or {},
        )

    async def list_user_emails(self, per_page: int = 1000) -> dict[UUID, str]:
        """
        Map user ids to emails via the admin API.

        Returns an empty mapping when no service-role key is configured.
        """
        service_key = self.settings.supabase_service_role_key
        if not service_key:
            return {}

        try:
            response = await self.http.get(
                f"{self.base_url}/admin/users",
                params={"page": 1, "per_page": per_page},
                headers={"apikey": service_key, "Authorization": f"Bearer {service_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Admin user listing failed: %s", e)
            raise UpstreamError() from e

        emails: dict[UUID, str] = {}
        for user in response.json().get("users", []):
            if user.get("id") and user.get("email"):
                emails[UUID(user["id"])] = user["email"]
        return emails

    async def aclose(self) -> None:
        await self.http.aclose()
