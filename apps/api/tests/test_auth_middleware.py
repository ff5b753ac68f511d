"""Bearer authentication dependency and verifier adapter tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
import os
import unittest

from fastapi import Request
from fastapi.testclient import TestClient
from jose import jwt
from pydantic import ValidationError

from app.adapters.auth.base import AuthVerificationError
from app.adapters.auth.delegated import ProviderTokenVerifier
from app.adapters.auth.self_issued import ALGORITHM, SelfIssuedTokenVerifier
from app.core.config import Settings, get_settings
from app.main import create_app
from app.repositories.memory import InMemoryIdentityProvider, build_memory_backend
from app.routes.dependencies import build_token_verifier, get_member_service, parse_bearer_token
from app.schemas.member import Member

_JWT_SECRET = "test-jwt-secret"


class _CapturingMemberService:
    def __init__(self) -> None:
        self.calls = 0

    async def list_members(self) -> list[Member]:
        self.calls += 1
        return [Member(id="member-1", name="Ada")]


class _SettingsEnvCase(unittest.TestCase):
    _env = {
        "RESEARCH_LOG_BACKEND": "memory",
        "RESEARCH_LOG_SUPABASE_URL": "https://project.supabase.test",
        "RESEARCH_LOG_SUPABASE_SERVICE_KEY": "service-key",
        "RESEARCH_LOG_SUPABASE_ANON_KEY": "anon-key",
        "RESEARCH_LOG_JWT_SECRET": _JWT_SECRET,
        "RESEARCH_LOG_AUTH_STRATEGY": "self_issued",
    }

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env}
        os.environ.update(self._env)
        get_settings.cache_clear()

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()

    def _register_and_login(self, client: TestClient, email: str, name: str = "Member") -> tuple[str, str]:
        registered = client.post("/api/register", json={"email": email, "password": "s3cret-pass", "name": name})
        self.assertEqual(registered.status_code, 201)
        login = client.post("/api/login", json={"email": email, "password": "s3cret-pass"})
        self.assertEqual(login.status_code, 200)
        return registered.json()["id"], login.json()["access_token"]


class BearerHeaderApiTests(_SettingsEnvCase):
    def _assert_rejected_without_store_calls(self, headers: dict[str, str], message: str) -> None:
        app = create_app()
        client = TestClient(app)
        store = app.state.backend.db

        response = client.get("/api/members", headers=headers)

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "UNAUTHENTICATED")
        self.assertEqual(response.json()["message"], message)
        self.assertEqual(store.read_count, 0)
        self.assertEqual(store.write_count, 0)

    def test_missing_authorization_header_returns_401_without_store_calls(self) -> None:
        self._assert_rejected_without_store_calls({}, "Authorization header missing or invalid")

    def test_bearer_prefix_is_case_sensitive(self) -> None:
        app = create_app()
        client = TestClient(app)
        _, token = self._register_and_login(client, "case@example.com")

        response = client.get("/api/members", headers={"Authorization": f"bearer {token}"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Authorization header missing or invalid")

    def test_empty_bearer_token_is_malformed(self) -> None:
        self._assert_rejected_without_store_calls(
            {"Authorization": "Bearer "},
            "Authorization header missing or invalid",
        )

    def test_basic_scheme_is_malformed(self) -> None:
        self._assert_rejected_without_store_calls(
            {"Authorization": "Basic dXNlcjpwYXNz"},
            "Authorization header missing or invalid",
        )

    def test_garbage_token_returns_invalid_or_expired(self) -> None:
        self._assert_rejected_without_store_calls(
            {"Authorization": "Bearer not-a-jwt"},
            "Invalid or expired token",
        )

    def test_expired_token_returns_invalid_or_expired(self) -> None:
        expired = jwt.encode(
            {"id": "user-1", "email": "a@x.com", "name": "A", "exp": datetime.now(UTC) - timedelta(minutes=1)},
            _JWT_SECRET,
            algorithm=ALGORITHM,
        )
        self._assert_rejected_without_store_calls(
            {"Authorization": f"Bearer {expired}"},
            "Invalid or expired token",
        )

    def test_token_signed_with_other_secret_is_rejected(self) -> None:
        forged = SelfIssuedTokenVerifier("another-secret").issue_token(user_id="user-1", email=None, name=None)
        self._assert_rejected_without_store_calls(
            {"Authorization": f"Bearer {forged}"},
            "Invalid or expired token",
        )

    def test_malformed_body_without_credentials_is_unauthenticated(self) -> None:
        app = create_app()
        client = TestClient(app)
        _, token = self._register_and_login(client, "body@example.com")
        store = app.state.backend.db
        writes_before = store.write_count

        def _post(headers: dict[str, str]):
            return client.post(
                "/api/research",
                content="{not json",
                headers={"Content-Type": "application/json", **headers},
            )

        missing = _post({})
        invalid = _post({"Authorization": "Bearer not-a-jwt"})
        authenticated = _post({"Authorization": f"Bearer {token}"})

        self.assertEqual(missing.status_code, 401)
        self.assertEqual(missing.json()["message"], "Authorization header missing or invalid")
        self.assertEqual(invalid.status_code, 401)
        self.assertEqual(invalid.json()["message"], "Invalid or expired token")
        self.assertEqual(authenticated.status_code, 400)
        self.assertEqual(authenticated.json()["code"], "INVALID_INPUT")
        self.assertEqual(store.write_count, writes_before)

    def test_malformed_login_body_stays_a_validation_error(self) -> None:
        client = TestClient(create_app())

        response = client.post(
            "/api/login",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Email and password required")

    def test_anon_key_and_health_need_no_token(self) -> None:
        client = TestClient(create_app())

        anon = client.get("/api/anon-key")
        self.assertEqual(anon.status_code, 200)
        self.assertEqual(anon.json(), {"anonKey": "anon-key", "supabaseUrl": "https://project.supabase.test"})

        health = client.get("/api/health")
        self.assertEqual(health.status_code, 200)
        self.assertEqual(health.json(), {"status": "ok"})


class SelfIssuedPrincipalApiTests(_SettingsEnvCase):
    def test_login_token_authenticates_as_the_same_principal(self) -> None:
        client = TestClient(create_app())
        user_id, token = self._register_and_login(client, "same@example.com", name="Same")

        me = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json(), {"id": user_id, "name": "Same", "email": "same@example.com"})

    def test_principal_is_attached_to_request_state(self) -> None:
        app = create_app()
        client = TestClient(app)
        user_id, token = self._register_and_login(client, "state@example.com")

        capturing = _CapturingMemberService()
        observed: dict[str, str] = {}

        def _override_member_service(request: Request) -> _CapturingMemberService:
            observed["user_id"] = request.state.auth_principal.user_id
            return capturing

        app.dependency_overrides[get_member_service] = _override_member_service

        response = client.get("/api/members", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(capturing.calls, 1)
        self.assertEqual(observed.get("user_id"), user_id)


class DelegatedPrincipalApiTests(_SettingsEnvCase):
    _env = {**_SettingsEnvCase._env, "RESEARCH_LOG_AUTH_STRATEGY": "delegated"}

    def test_login_returns_provider_token_and_user(self) -> None:
        client = TestClient(create_app())
        client.post("/api/register", json={"email": "d@example.com", "password": "pw-123456", "name": "Dee"})

        login = client.post("/api/login", json={"email": "d@example.com", "password": "pw-123456"})

        self.assertEqual(login.status_code, 200)
        body = login.json()
        self.assertTrue(body["access_token"].startswith("session-"))
        self.assertEqual(body["user"]["email"], "d@example.com")

        me = client.get("/api/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["id"], body["user"]["id"])

    def test_password_reaches_provider_unmodified(self) -> None:
        client = TestClient(create_app())
        client.post("/api/register", json={"email": "p@example.com", "password": " pw-123456 ", "name": "Pip"})

        trimmed = client.post("/api/login", json={"email": "p@example.com", "password": "pw-123456"})
        exact = client.post("/api/login", json={"email": "p@example.com", "password": " pw-123456 "})

        self.assertEqual(trimmed.status_code, 401)
        self.assertEqual(exact.status_code, 200)

    def test_unknown_provider_token_is_rejected(self) -> None:
        client = TestClient(create_app())

        response = client.get("/api/members", headers={"Authorization": "Bearer session-unknown"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid or expired token")

    def test_provider_outage_during_lookup_is_unauthenticated(self) -> None:
        app = create_app()
        client = TestClient(app)
        client.post("/api/register", json={"email": "o@example.com", "password": "pw-123456", "name": "Oz"})
        token = client.post("/api/login", json={"email": "o@example.com", "password": "pw-123456"}).json()[
            "access_token"
        ]
        app.state.backend.auth.unavailable_message = "provider unreachable"

        response = client.get("/api/members", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid or expired token")

    def test_self_issued_token_is_not_accepted_by_delegated_deployment(self) -> None:
        client = TestClient(create_app())
        token = SelfIssuedTokenVerifier(_JWT_SECRET).issue_token(user_id="user-1", email=None, name=None)

        response = client.get("/api/members", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 401)


class VerifierUnitTests(unittest.IsolatedAsyncioTestCase):
    async def test_self_issued_round_trip_uses_id_claim(self) -> None:
        verifier = SelfIssuedTokenVerifier("secret")
        token = verifier.issue_token(user_id="user-42", email="u@x.com", name="U")

        principal = await verifier.verify_token(token)

        self.assertEqual(principal.user_id, "user-42")
        self.assertEqual(principal.email, "u@x.com")
        self.assertEqual(principal.name, "U")
        self.assertEqual(principal.claims["id"], "user-42")

    async def test_self_issued_token_expires_after_ttl(self) -> None:
        verifier = SelfIssuedTokenVerifier("secret")
        token = verifier.issue_token(user_id="user-42", email=None, name=None)

        claims = jwt.get_unverified_claims(token)
        lifetime = claims["exp"] - datetime.now(UTC).timestamp()

        self.assertGreater(lifetime, 11.9 * 3600)
        self.assertLessEqual(lifetime, 12 * 3600)

    async def test_token_without_id_claim_is_rejected(self) -> None:
        token = jwt.encode(
            {"sub": "user-1", "exp": datetime.now(UTC) + timedelta(hours=1)},
            "secret",
            algorithm=ALGORITHM,
        )

        with self.assertRaises(AuthVerificationError):
            await SelfIssuedTokenVerifier("secret").verify_token(token)

    async def test_delegated_verifier_normalizes_provider_user(self) -> None:
        provider = InMemoryIdentityProvider()
        await provider.create_user(email="p@x.com", password="pw", name="Pat")
        session = await provider.sign_in_with_password(email="p@x.com", password="pw")
        assert session is not None

        principal = await ProviderTokenVerifier(provider).verify_token(session.access_token)

        self.assertEqual(principal.user_id, session.user.id)
        self.assertEqual(principal.email, "p@x.com")
        self.assertEqual(principal.name, "Pat")

    async def test_delegated_verifier_rejects_unknown_token(self) -> None:
        with self.assertRaises(AuthVerificationError):
            await ProviderTokenVerifier(InMemoryIdentityProvider()).verify_token("session-nope")


class BearerParsingUnitTests(unittest.TestCase):
    def test_parse_bearer_token(self) -> None:
        self.assertEqual(parse_bearer_token("Bearer abc.def"), "abc.def")
        self.assertIsNone(parse_bearer_token(None))
        self.assertIsNone(parse_bearer_token(""))
        self.assertIsNone(parse_bearer_token("Bearer"))
        self.assertIsNone(parse_bearer_token("Bearer   "))
        self.assertIsNone(parse_bearer_token("BEARER abc"))
        self.assertIsNone(parse_bearer_token("Token abc"))


class SettingsUnitTests(unittest.TestCase):
    _base = {
        "supabase_url": "https://project.supabase.test",
        "supabase_service_key": "service-key",
        "supabase_anon_key": "anon-key",
    }

    def test_self_issued_strategy_requires_signing_secret(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(auth_strategy="self_issued", jwt_secret=None, **self._base)

    def test_missing_provider_url_fails_fast(self) -> None:
        old = os.environ.pop("RESEARCH_LOG_SUPABASE_URL", None)
        try:
            with self.assertRaises(ValidationError):
                Settings(
                    supabase_service_key="service-key",
                    supabase_anon_key="anon-key",
                    jwt_secret="secret",
                )
        finally:
            if old is not None:
                os.environ["RESEARCH_LOG_SUPABASE_URL"] = old

    def test_strategy_selects_verifier(self) -> None:
        backend = build_memory_backend()

        delegated = build_token_verifier(Settings(auth_strategy="delegated", **self._base), backend)
        self_issued = build_token_verifier(
            Settings(auth_strategy="self_issued", jwt_secret="secret", **self._base),
            backend,
        )

        self.assertIsInstance(delegated, ProviderTokenVerifier)
        self.assertIsInstance(self_issued, SelfIssuedTokenVerifier)


if __name__ == "__main__":
    unittest.main()
