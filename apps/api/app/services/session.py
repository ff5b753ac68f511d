"""Login, registration and current-user service layer."""

from __future__ import annotations

import logging

from app.adapters.auth import SelfIssuedTokenVerifier, TokenVerifier
from app.adapters.backend.base import PROFILES_TABLE, Backend, BackendError, DuplicateAccountError, eq
from app.core.logging_safety import safe_log_identifier
from app.core.passwords import hash_password, verify_password
from app.errors import backend_unavailable, conflict, not_found, unauthenticated
from app.schemas.auth import LoginResponse
from app.schemas.member import Profile

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid credentials"


class SessionService:
    """Issues credentials in the flow that matches the active token verifier.

    A self-issued verifier means profile lookup plus a locally signed token; a
    delegated verifier means provider password sign-in and the provider's own
    token. Either way the returned token verifies with ``verifier``.
    """

    def __init__(self, backend: Backend, verifier: TokenVerifier, *, legacy_plaintext_passwords: bool = False) -> None:
        self._backend = backend
        self._verifier = verifier
        self._legacy_plaintext = legacy_plaintext_passwords

    async def login(self, *, email: str, password: str) -> LoginResponse:
        safe_email = safe_log_identifier(email.lower(), prefix="email")
        if isinstance(self._verifier, SelfIssuedTokenVerifier):
            response = await self._login_with_profile(email=email, password=password, issuer=self._verifier)
        else:
            response = await self._login_with_provider(email=email, password=password)
        logger.info("login.accepted email=%s", safe_email)
        return response

    async def _login_with_profile(
        self, *, email: str, password: str, issuer: SelfIssuedTokenVerifier
    ) -> LoginResponse:
        try:
            rows = await self._backend.db.select(
                PROFILES_TABLE,
                columns=("id", "email", "name", "password"),
                filters=(eq("email", email),),
                limit=1,
            )
        except BackendError as exc:
            logger.error("login.backend_failed stage=profile_lookup error=%s", exc)
            raise backend_unavailable(str(exc)) from exc

        if not rows or not verify_password(password, rows[0].get("password"), legacy_plaintext=self._legacy_plaintext):
            logger.warning("login.rejected email=%s", safe_log_identifier(email.lower(), prefix="email"))
            raise unauthenticated(_INVALID_CREDENTIALS)

        profile = rows[0]
        token = issuer.issue_token(user_id=str(profile["id"]), email=profile.get("email"), name=profile.get("name"))
        return LoginResponse(access_token=token)

    async def _login_with_provider(self, *, email: str, password: str) -> LoginResponse:
        try:
            session = await self._backend.auth.sign_in_with_password(email=email, password=password)
        except BackendError as exc:
            logger.error("login.backend_failed stage=provider_sign_in error=%s", exc)
            raise backend_unavailable(str(exc)) from exc

        if session is None:
            logger.warning("login.rejected email=%s", safe_log_identifier(email.lower(), prefix="email"))
            raise unauthenticated(_INVALID_CREDENTIALS)

        return LoginResponse(access_token=session.access_token, user=session.user.model_dump(mode="json"))

    async def register(self, *, email: str, password: str, name: str) -> Profile:
        try:
            user = await self._backend.auth.create_user(email=email, password=password, name=name)
        except DuplicateAccountError as exc:
            raise conflict("Account already exists") from exc
        except BackendError as exc:
            logger.error("register.backend_failed stage=create_user error=%s", exc)
            raise backend_unavailable(str(exc)) from exc

        row = {"id": user.id, "name": name, "email": email}
        if isinstance(self._verifier, SelfIssuedTokenVerifier):
            row["password"] = password if self._legacy_plaintext else hash_password(password)

        try:
            stored = await self._backend.db.insert(PROFILES_TABLE, row)
        except BackendError as exc:
            logger.error("register.backend_failed stage=insert_profile error=%s", exc)
            raise backend_unavailable(str(exc)) from exc

        logger.info("register.created principal_id=%s", safe_log_identifier(user.id, prefix="pid"))
        return Profile(id=str(stored["id"]), name=stored.get("name"), email=stored.get("email"))

    async def get_profile(self, *, user_id: str) -> Profile:
        try:
            rows = await self._backend.db.select(
                PROFILES_TABLE,
                columns=("id", "name", "email"),
                filters=(eq("id", user_id),),
                limit=1,
            )
        except BackendError as exc:
            raise backend_unavailable(str(exc)) from exc

        if not rows:
            raise not_found("Profile not found")
        return Profile.model_validate(rows[0])
