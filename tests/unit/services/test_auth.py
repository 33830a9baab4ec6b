"""
Unit tests for authentication service.
"""

import base64
import json
from unittest.mock import patch

import pytest
from google.auth.exceptions import TransportError

from memoire.config import get_config
from memoire.error_handling import AuthenticationError, AuthorizationError
from memoire.services.auth import (
    IAP_CERTS_URL,
    AuthService,
    UserInfo,
    hash_password,
    require_admin,
    verify_password,
)
from memoire.services.records import RecordStore


def make_jwt(payload: dict) -> str:
    encoded = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")
    return f"header.{encoded}.signature"


@pytest.fixture
def record_store(temp_dir):
    store = RecordStore(db_path=str(temp_dir / "auth.db"), sync_enabled=False)
    yield store
    store.close()


@pytest.fixture
def auth_service(record_store):
    return AuthService(record_store=record_store)


class TestPasswords:
    """Test cases for password hashing."""

    def test_hash_and_verify(self):
        hashed = hash_password("s3cret")

        assert hashed.startswith("$2")
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_missing_or_malformed_hash(self):
        assert not verify_password("s3cret", None)
        assert not verify_password("s3cret", "not-a-hash")

    def test_long_passwords_truncated(self):
        hashed = hash_password("x" * 100)
        assert verify_password("x" * 72, hashed)


class TestPasswordSignIn:
    """Test cases for password sign-in."""

    def test_admin_sign_in(self, auth_service, record_store):
        record_store.upsert_profile("admin-1", "admin@example.com", hash_password("pw"), True)

        user = auth_service.sign_in_with_password("Admin@Example.com ", "pw")

        assert user.user_id == "admin-1"
        assert user.is_admin
        assert user.source == "password"

    def test_wrong_password(self, auth_service, record_store):
        record_store.upsert_profile("admin-1", "admin@example.com", hash_password("pw"), True)

        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.sign_in_with_password("admin@example.com", "nope")
        assert exc_info.value.code == "invalid_credentials"

    def test_unknown_email(self, auth_service):
        with pytest.raises(AuthenticationError):
            auth_service.sign_in_with_password("ghost@example.com", "pw")

    def test_non_admin_refused(self, auth_service, record_store):
        record_store.upsert_profile("user-1", "user@example.com", hash_password("pw"), False)

        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.sign_in_with_password("user@example.com", "pw")
        assert exc_info.value.code == "not_admin"

        user = auth_service.sign_in_with_password("user@example.com", "pw", require_admin=False)
        assert not user.is_admin


IAP_AUDIENCE = "/projects/123/global/backendServices/456"


@pytest.fixture
def iap_audience(monkeypatch):
    monkeypatch.setenv("IAP_AUDIENCE", IAP_AUDIENCE)
    get_config().clear_cache()
    return IAP_AUDIENCE


def iap_claims(**claims) -> dict:
    return {"iss": "https://cloud.google.com/iap", "aud": IAP_AUDIENCE, **claims}


class TestIAPHeader:
    """Test cases for Cloud IAP header verification."""

    @patch("memoire.services.auth.id_token.verify_token")
    def test_verified_header(self, mock_verify, auth_service, record_store, iap_audience):
        record_store.upsert_profile("sub-1", "admin@example.com", None, True)
        mock_verify.return_value = iap_claims(sub="sub-1", email="accounts.google.com:admin@example.com", name="Admin")

        user = auth_service.parse_iap_header({"X-Goog-IAP-JWT-Assertion": "signed.jwt.token"})

        assert user.email == "admin@example.com"
        assert user.is_admin
        assert user.source == "iap"
        args, kwargs = mock_verify.call_args
        assert args[0] == "signed.jwt.token"
        assert kwargs["audience"] == iap_audience
        assert kwargs["certs_url"] == IAP_CERTS_URL

    @patch("memoire.services.auth.id_token.verify_token")
    def test_lowercase_header_name(self, mock_verify, auth_service, iap_audience):
        mock_verify.return_value = iap_claims(sub="sub-2", email="user@example.com")

        user = auth_service.parse_iap_header({"x-goog-iap-jwt-assertion": "signed.jwt.token"})

        assert user.user_id == "sub-2"
        assert not user.is_admin

    @patch("memoire.services.auth.id_token.verify_token")
    def test_forged_token_never_grants_admin(self, mock_verify, auth_service, record_store, iap_audience):
        """An unsigned token naming the admin email is rejected."""
        record_store.upsert_profile("admin-1", "boss@example.com", None, True)
        mock_verify.side_effect = ValueError("Could not verify token signature.")
        token = make_jwt({"sub": "attacker", "email": "boss@example.com"})

        assert auth_service.parse_iap_header({"X-Goog-IAP-JWT-Assertion": token}) is None

    @patch("memoire.services.auth.id_token.verify_token")
    def test_header_ignored_without_audience(self, mock_verify, auth_service, record_store):
        record_store.upsert_profile("admin-1", "boss@example.com", None, True)
        token = make_jwt({"sub": "attacker", "email": "boss@example.com"})

        assert auth_service.parse_iap_header({"X-Goog-IAP-JWT-Assertion": token}) is None
        mock_verify.assert_not_called()

    @patch("memoire.services.auth.id_token.verify_token")
    def test_wrong_issuer(self, mock_verify, auth_service, iap_audience):
        mock_verify.return_value = iap_claims(iss="https://accounts.google.com", sub="s", email="user@example.com")

        assert auth_service.parse_iap_header({"X-Goog-IAP-JWT-Assertion": "signed.jwt.token"}) is None

    @patch("memoire.services.auth.id_token.verify_token")
    def test_key_fetch_failure(self, mock_verify, auth_service, iap_audience):
        mock_verify.side_effect = TransportError("certs unreachable")

        assert auth_service.parse_iap_header({"X-Goog-IAP-JWT-Assertion": "signed.jwt.token"}) is None

    @patch("memoire.services.auth.id_token.verify_token")
    def test_missing_or_incomplete_header(self, mock_verify, auth_service, iap_audience):
        mock_verify.return_value = iap_claims(sub="x")

        assert auth_service.parse_iap_header({}) is None
        assert auth_service.parse_iap_header({"X-Goog-IAP-JWT-Assertion": "signed.jwt.token"}) is None


class TestDevelopmentUser:
    """Test cases for development sign-in."""

    def test_development_user_defaults(self, auth_service):
        user = auth_service.development_user()

        assert user.email == "dev@example.com"
        assert user.user_id == "dev-user-123"
        assert user.source == "development"

    def test_development_user_reads_admin_flag(self, auth_service, record_store):
        record_store.upsert_profile("dev-user-123", "dev@example.com", None, True)
        assert auth_service.development_user().is_admin

    @patch.dict("os.environ", {"ENVIRONMENT": "production"})
    def test_disabled_in_production(self, auth_service):
        get_config().clear_cache()

        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.development_user()
        assert exc_info.value.code == "dev_auth_disabled"


class TestAdminSeeding:
    """Test cases for ensure_admin_profile."""

    def test_no_seed_without_config(self, auth_service):
        assert not auth_service.ensure_admin_profile()

    def test_seed_once(self, auth_service, record_store, monkeypatch):
        password_hash = hash_password("pw")
        monkeypatch.setenv("ADMIN_EMAIL", "Admin@Example.com")
        monkeypatch.setenv("ADMIN_PASSWORD_HASH", password_hash)
        get_config().clear_cache()

        assert auth_service.ensure_admin_profile()
        assert not auth_service.ensure_admin_profile()

        profile = record_store.get_profile("admin:admin@example.com")
        assert profile.is_admin
        assert auth_service.sign_in_with_password("admin@example.com", "pw").is_admin


class TestRequireAdmin:
    """Test cases for require_admin."""

    def test_admin_passes(self, admin_session):
        assert require_admin(admin_session, "delete") is admin_session

    @pytest.mark.parametrize("user", [None, UserInfo(user_id="u", email="u@example.com")])
    def test_others_refused(self, user):
        with pytest.raises(AuthorizationError) as exc_info:
            require_admin(user, "delete")
        assert exc_info.value.code == "admin_required"
