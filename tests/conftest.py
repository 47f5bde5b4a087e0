# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from dataclasses import dataclass

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.signing import SigningKey
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("NONCE_BACKEND", "memory")

from wallet_chat.core.security import create_access_token
from wallet_chat.db.session import Base
from wallet_chat.db.session import get_db as app_get_session
from wallet_chat.main import app as fastapi_app
from wallet_chat.models import User
from wallet_chat.realtime.connections import ConnectionManager
from wallet_chat.services.nonce import NonceRegistry

TEST_DB_URL = "sqlite://"


@dataclass
class Wallet:
    """A throwaway Ed25519 wallet that signs sign-in messages."""

    signing_key: SigningKey
    address: str

    @property
    def public_key_hex(self) -> str:
        return "0x" + self.signing_key.verify_key.encode().hex()

    def sign(self, message: str) -> bytes:
        return self.signing_key.sign(message.encode("utf-8")).signature

    def sign_hex(self, message: str) -> str:
        return "0x" + self.sign(message).hex()


def make_wallet() -> Wallet:
    signing_key = SigningKey.generate()
    # Addresses only need to be unique here; derive one from the key.
    address = "0x" + signing_key.verify_key.encode().hex()[:40]
    return Wallet(signing_key=signing_key, address=address)


def sign_in_message(nonce: str) -> str:
    return f"Sign in to Wallet Chat\nNonce: {nonce}"


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, address=user.wallet_address, public_key=user.public_key)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database even though services commit.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def nonce_registry(app: FastAPI) -> NonceRegistry:
    """Give every test its own nonce registry."""
    registry = NonceRegistry()
    app.state.nonce_registry = registry
    return registry


@pytest.fixture()
def connections(app: FastAPI) -> ConnectionManager:
    manager = ConnectionManager()
    app.state.connections = manager
    return manager


@pytest.fixture()
def client(app: FastAPI, nonce_registry: NonceRegistry, connections: ConnectionManager) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _create_user(db_session: Session, username: str) -> User:
    wallet = make_wallet()
    user = User(
        username=username,
        wallet_address=wallet.address,
        public_key=wallet.public_key_hex,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def alice(db_session: Session) -> User:
    return _create_user(db_session, "alice")


@pytest.fixture()
def bob(db_session: Session) -> User:
    return _create_user(db_session, "bob")


@pytest.fixture()
def carol(db_session: Session) -> User:
    return _create_user(db_session, "carol")


@pytest.fixture()
def alice_headers(alice: User) -> dict[str, str]:
    return auth_headers(alice)


@pytest.fixture()
def bob_headers(bob: User) -> dict[str, str]:
    return auth_headers(bob)
