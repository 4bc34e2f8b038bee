"""
Shared test fixtures.

InMemoryUserRepository mirrors the MongoDB repository's query semantics
(including the ``expiry > now`` predicates) so services and routes can be
exercised without a database. FakeClock drives expiry deterministically.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app import create_app
from config import AppSettings, PasswordSettings, RecoverySettings
from errors import UserAlreadyExistsError
from infrastructure.delivery.response import ResponseDeliveryChannel
from schemas.models.base import parse_object_id
from schemas.models.user import UserDoc
from services.auth_service import AuthService
from services.password_reset_service import PasswordResetService
from services.session_service import SessionIssuer
from shared.crypto import PasswordHashing

TEST_JWT_SECRET = "test-signing-secret-with-enough-length-for-hs256"


class FakeClock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryUserRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, dict] = {}
        self.calls: list[str] = []

    def _first(self, predicate: Callable[[dict], bool]) -> Optional[UserDoc]:
        for doc in self.docs.values():
            if predicate(doc):
                return UserDoc.from_mongo(dict(doc))
        return None

    def raw(self, user_id: Any) -> dict:
        return self.docs[parse_object_id(str(user_id))]

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        self.calls.append("find_by_email")
        return self._first(lambda d: d["email"] == email)

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        self.calls.append("find_by_id")
        oid = parse_object_id(user_id)
        return self._first(lambda d: d["_id"] == oid)

    async def find_by_reset_token(self, token_hash: str, now: datetime) -> Optional[UserDoc]:
        self.calls.append("find_by_reset_token")
        return self._first(
            lambda d: d.get("reset_token_hash") == token_hash
            and d.get("reset_token_expiry") is not None
            and d["reset_token_expiry"] > now
        )

    async def find_by_verification_code(
        self, user_id: str, code_hash: str, now: datetime
    ) -> Optional[UserDoc]:
        self.calls.append("find_by_verification_code")
        oid = parse_object_id(user_id)
        return self._first(
            lambda d: d["_id"] == oid
            and d.get("verification_code_hash") == code_hash
            and d.get("verification_code_expiry") is not None
            and d["verification_code_expiry"] > now
            and d.get("reset_token_hash") is not None
            and d.get("reset_token_expiry") is not None
            and d["reset_token_expiry"] > now
        )

    async def create(self, user: UserDoc) -> UserDoc:
        self.calls.append("create")
        if any(d["email"] == user.email for d in self.docs.values()):
            raise UserAlreadyExistsError("User already exists", field="email")
        oid = ObjectId()
        data = user.to_mongo()
        data["_id"] = oid
        self.docs[oid] = data
        return user.model_copy(update={"id": oid})

    async def update_credential_fields(self, user_id: str, fields: Mapping[str, Any]) -> bool:
        self.calls.append("update_credential_fields")
        oid = parse_object_id(user_id)
        if oid not in self.docs:
            return False
        self.docs[oid].update(fields)
        return True


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def app_env(monkeypatch):
    """Minimal environment for AppSettings with cheap argon2 parameters."""
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("PASSWORD_TIME_COST", "1")
    monkeypatch.setenv("PASSWORD_MEMORY_COST", "8")
    monkeypatch.setenv("PASSWORD_PARALLELISM", "1")
    monkeypatch.delenv("ENV", raising=False)
    return monkeypatch


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def passwords() -> PasswordHashing:
    return PasswordHashing(
        PasswordSettings(password_time_cost=1, password_memory_cost=8, password_parallelism=1)
    )


@pytest.fixture
def sessions(app_env) -> SessionIssuer:
    return SessionIssuer(AppSettings().jwt)


@pytest.fixture
def auth_service(repo, sessions, passwords, clock) -> AuthService:
    return AuthService(repo, sessions, passwords, clock=clock)


@pytest.fixture
def reset_service(repo, passwords, clock) -> PasswordResetService:
    return PasswordResetService(
        repo, passwords, ResponseDeliveryChannel(), RecoverySettings(), clock=clock
    )


@pytest.fixture
def client(app_env, repo):
    app = create_app(AppSettings(), users=repo)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def production_client(app_env, repo):
    app_env.setenv("ENV", "production")
    app = create_app(AppSettings(), users=repo)
    with TestClient(app, base_url="https://testserver") as c:
        yield c
