import base64
import os

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

TEST_WEBHOOK_URL = "https://api.unicampus.test/api/v1/payments/webhook"

_private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
_public_key_pem = _private_key.public_key().public_bytes(
    serialization.Encoding.PEM,
    serialization.PublicFormat.SubjectPublicKeyInfo,
).decode()


def _set_test_env() -> None:
    defaults = {
        "APP_NAME": "UniCampus Test",
        "ENVIRONMENT": "test",
        "SECRET_KEY": "test-secret-key-with-enough-length-for-hs256",
        "DATABASE_URL": "sqlite://",
        "AUTO_CREATE_TABLES": "false",
        "RATE_LIMIT_ENABLED": "false",
        "NKWA_API_KEY": "nkwa_test_key",
        "NKWA_ENVIRONMENT": "sandbox",
        "NKWA_TEST_MODE": "true",
        "NKWA_TIMEOUT_SECONDS": "5",
        "SUBSCRIPTION_AMOUNT": "399",
        "SUBSCRIPTION_CURRENCY": "XAF",
        "SUBSCRIPTION_PERIOD_DAYS": "30",
        "PUSH_PROVIDER": "console",
        "CORS_ORIGINS": "http://localhost:5173",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)
    # Must pair with the private key below, whatever the shell exports.
    os.environ["NKWA_PUBLIC_KEY"] = _public_key_pem
    os.environ["NKWA_WEBHOOK_URL"] = TEST_WEBHOOK_URL


_set_test_env()


def sign(private_key, timestamp: str, body: bytes, url: str = TEST_WEBHOOK_URL) -> str:
    payload = timestamp.encode() + url.encode() + body
    return base64.b64encode(private_key.sign(payload, padding.PKCS1v15(), hashes.SHA256())).decode()


@pytest.fixture
def private_key():
    return _private_key


@pytest.fixture
def public_key_pem():
    return _public_key_pem


@pytest.fixture
def signed_headers():
    def _build(body: bytes, *, timestamp: str = "1760870400", key=None) -> dict:
        return {
            "X-Timestamp": timestamp,
            "X-Signature": sign(key or _private_key, timestamp, body),
            "Content-Type": "application/json",
        }

    return _build


@pytest.fixture
def db():
    from unicampus.core.database import Base, SessionLocal, engine
    import unicampus.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
