"""Authentication service for memoire application."""

from dataclasses import dataclass
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from passlib.context import CryptContext

from ..config import get_config, get_iap_audience
from ..error_handling import AuthenticationError, AuthorizationError
from ..logging_config import get_logger, log_security_event, log_user_action
from .records import RecordStore, get_record_store

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

INVALID_ADMIN_CREDENTIALS = "Invalid credentials or not authorized as admin"

IAP_CERTS_URL = "https://www.gstatic.com/iap/verify/public_key"
IAP_ISSUER = "https://cloud.google.com/iap"

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> str:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return pwd_context.hash(_truncate(password))


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(_truncate(plain_password), hashed_password)
    except ValueError:
        # Malformed hash in the profiles table
        return False


@dataclass
class UserInfo:
    """A signed-in session."""

    user_id: str
    email: str
    name: str | None = None
    is_admin: bool = False
    source: str = "password"


class AuthService:
    """
    Creates sessions from password sign-in, Cloud IAP headers or the
    development form. The privileged flag always comes from the profiles
    table and is read once when the session is created.
    """

    IAP_HEADER_NAME = "X-Goog-IAP-JWT-Assertion"

    def __init__(self, record_store: RecordStore | None = None) -> None:
        self._record_store = record_store

    @property
    def record_store(self) -> RecordStore:
        if self._record_store is None:
            self._record_store = get_record_store()
        return self._record_store

    def is_development_mode(self) -> bool:
        return get_config().is_development()

    def sign_in_with_password(self, email: str, password: str, require_admin: bool = True) -> UserInfo:
        """
        Check credentials against the profiles table.

        Args:
            email: Profile email, matched case-insensitively
            password: Plain-text password
            require_admin: Refuse profiles without the admin flag

        Returns:
            UserInfo: The new session

        Raises:
            AuthenticationError: On bad credentials or a non-admin profile when required
        """
        email = (email or "").strip()
        profile = self.record_store.get_profile_by_email(email) if email else None

        if profile is None or not verify_password(password or "", profile.password_hash):
            log_security_event("password_sign_in_failed", email=email)
            raise AuthenticationError(
                f"Password sign-in failed for '{email}'",
                code="invalid_credentials",
                user_message=INVALID_ADMIN_CREDENTIALS,
            )

        if require_admin and not profile.is_admin:
            log_security_event("non_admin_sign_in_refused", user_id=profile.user_id, email=email)
            raise AuthenticationError(
                f"Profile '{email}' is not an admin",
                code="not_admin",
                user_message=INVALID_ADMIN_CREDENTIALS,
            )

        user = UserInfo(user_id=profile.user_id, email=profile.email, is_admin=profile.is_admin, source="password")
        log_user_action(user.user_id, "password_sign_in", email=user.email, is_admin=user.is_admin)
        return user

    def parse_iap_header(self, headers: dict[str, str]) -> UserInfo | None:
        """
        Build a session from a Cloud IAP JWT assertion.

        The assertion is only trusted after its signature, issuer and
        audience check out against the IAP public keys. Without a configured
        IAP_AUDIENCE the header is ignored.

        Returns:
            UserInfo | None: The session, or None if absent or not verifiable
        """
        jwt_token = headers.get(self.IAP_HEADER_NAME) or headers.get(self.IAP_HEADER_NAME.lower())
        if not jwt_token:
            return None

        audience = get_iap_audience()
        if not audience:
            log_security_event("iap_header_ignored", reason="iap_audience_not_configured")
            return None

        try:
            payload = self._verify_iap_token(jwt_token, audience)
        except (ValueError, GoogleAuthError) as e:
            log_security_event("iap_header_invalid", error=str(e))
            return None

        email = payload.get("email")
        sub = payload.get("sub")
        if not email or not sub:
            log_security_event("iap_header_incomplete", has_email=bool(email), has_sub=bool(sub))
            return None

        # IAP prefixes emails with "accounts.google.com:"
        email = str(email).split(":")[-1]
        user = UserInfo(
            user_id=str(sub),
            email=email,
            name=payload.get("name"),
            is_admin=self._profile_is_admin(str(sub), email),
            source="iap",
        )
        log_user_action(user.user_id, "iap_authentication", email=user.email, is_admin=user.is_admin)
        return user

    @staticmethod
    def _verify_iap_token(jwt_token: str, audience: str) -> dict[str, Any]:
        payload = id_token.verify_token(
            jwt_token,
            google_requests.Request(),
            audience=audience,
            certs_url=IAP_CERTS_URL,
        )
        if payload.get("iss") != IAP_ISSUER:
            raise ValueError(f"Unexpected IAP token issuer: {payload.get('iss')}")
        return payload

    def development_user(self, email: str | None = None, user_id: str | None = None) -> UserInfo:
        """
        Session for local development, only available outside production.

        Raises:
            AuthenticationError: When called in production
        """
        if not self.is_development_mode():
            raise AuthenticationError("Development sign-in is disabled in production", code="dev_auth_disabled")

        config = get_config()
        email = email or config.get("DEV_USER_EMAIL", "dev@example.com")
        user_id = user_id or config.get("DEV_USER_ID", "dev-user-123")
        user = UserInfo(
            user_id=user_id,
            email=email,
            name=config.get("DEV_USER_NAME", "Development User"),
            is_admin=self._profile_is_admin(user_id, email),
            source="development",
        )
        log_user_action(user.user_id, "development_authentication", email=email, is_admin=user.is_admin)
        return user

    def _profile_is_admin(self, user_id: str, email: str) -> bool:
        profile = self.record_store.get_profile(user_id) or self.record_store.get_profile_by_email(email)
        return bool(profile and profile.is_admin)

    def ensure_admin_profile(self) -> bool:
        """
        Seed the admin profile from ADMIN_EMAIL and ADMIN_PASSWORD_HASH.

        Returns:
            bool: True when a profile was written
        """
        config = get_config()
        email = config.get("ADMIN_EMAIL")
        password_hash = config.get("ADMIN_PASSWORD_HASH")
        if not email or not password_hash:
            return False

        existing = self.record_store.get_profile_by_email(email)
        if existing and existing.is_admin and existing.password_hash == password_hash:
            return False

        user_id = existing.user_id if existing else f"admin:{email.lower()}"
        self.record_store.upsert_profile(user_id, email, password_hash, is_admin=True)
        logger.info("admin_profile_seeded", user_id=user_id, email=email)
        return True


def require_admin(user: UserInfo | None, action: str) -> UserInfo:
    """
    Return the session if it carries the admin flag.

    Raises:
        AuthorizationError: For anonymous or non-admin sessions
    """
    if user is None or not user.is_admin:
        raise AuthorizationError(
            f"Admin privilege required for '{action}'",
            code="admin_required",
            details={"action": action, "user_id": user.user_id if user else None},
        )
    return user


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get the global authentication service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
