# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

The identity provider and the marketplace users API are both replaced:
  • FakeIdentity implements the IdentityProvider protocol plus the
    account operations, and emits session changes like Supabase does;
  • FakeUsersBackend is an httpx.MockTransport handler holding user
    records in a dict.
"""

import asyncio
import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from core.users_api import UsersApi
from core.user_context import UserContext
from main import create_app
from models.auth import AuthResult, Session


API_BASE = "http://api.test/api"


def make_session(uid: str = "uid-1", email: str = "user@example.com", verified: bool = True) -> Session:
    return Session(
        access_token=f"token-{uid}",
        uid=uid,
        email=email,
        email_verified=verified,
        display_name="Test User",
    )


def make_profile(uid: str = "uid-1", user_type: str = "seeker", provider_type: Optional[str] = None,
                 approval_status: Optional[str] = None, **extra) -> dict:
    record = {
        "id": f"id-{uid}",
        "firebaseUid": uid,
        "email": f"{uid}@example.com",
        "name": f"User {uid}",
        "userType": user_type,
        "providerType": provider_type,
        "isVerified": True,
        "isActive": True,
    }
    if approval_status is not None:
        record["approvalStatus"] = approval_status
    record.update(extra)
    return record


# ============================================================
# Identity provider
# ============================================================
class FakeIdentity:
    def __init__(self, session: Optional[Session] = None, deliver_initial: bool = True):
        self.session = session
        self.deliver_initial = deliver_initial
        self.callbacks: List = []
        self.token_error: Optional[Exception] = None
        self.passwords: Dict[str, tuple] = {}
        self.reset_requests: List[str] = []
        self.unsubscribed = 0

    # IdentityProvider protocol
    def subscribe(self, callback):
        self.callbacks.append(callback)
        if self.deliver_initial:
            callback(self.session)

        def unsubscribe():
            self.unsubscribed += 1
            if callback in self.callbacks:
                self.callbacks.remove(callback)

        return unsubscribe

    def get_token(self):
        if self.token_error is not None:
            raise self.token_error
        return self.session.access_token if self.session else None

    def sign_out(self):
        self.emit(None)

    # Test helpers
    def emit(self, session: Optional[Session]):
        self.session = session
        for callback in list(self.callbacks):
            callback(session)

    # Account operations
    def sign_in(self, email, password):
        entry = self.passwords.get(email)
        if entry is None or entry[1] != password:
            return AuthResult(success=False, message="Incorrect email or password.", error_code="invalid_credentials")
        self.emit(make_session(uid=entry[0], email=email))
        return AuthResult(success=True, message="Login successful!")

    def sign_up(self, email, password, display_name):
        if email in self.passwords:
            return AuthResult(
                success=False,
                message="This email is already registered. Try logging in instead.",
                error_code="user_already_exists",
            )
        self.passwords[email] = (f"uid-{len(self.passwords) + 100}", password)
        return AuthResult(success=True, message="Account created! Please check your email for verification.")

    def oauth_url(self, provider):
        return AuthResult(success=True, message="ok", url=f"https://auth.test/{provider.value}")

    def reset_password(self, email):
        self.reset_requests.append(email)
        return AuthResult(success=True, message="Password reset email sent! Check your inbox.")

    def resend_verification(self, session):
        if session is None:
            return AuthResult(success=False, message="No user is currently signed in.")
        if session.email_verified:
            return AuthResult(success=False, message="Email is already verified.")
        return AuthResult(success=True, message="Verification email sent!")


# ============================================================
# Users API backend
# ============================================================
class FakeUsersBackend:
    def __init__(self):
        self.profiles: Dict[str, dict] = {}
        self.fail_status: Optional[int] = None
        self.gate: Optional[asyncio.Event] = None
        self.delay: float = 0
        self.calls: List[tuple] = []
        # Called with each request before it is answered
        self.before: Optional[Callable[[httpx.Request], None]] = None

    def add(self, record: dict) -> dict:
        self.profiles[record["firebaseUid"]] = record
        return record

    def by_id(self, user_id: str) -> Optional[dict]:
        for record in self.profiles.values():
            if str(record["id"]) == str(user_id):
                return record
        return None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len("/api"):]
        method = request.method
        self.calls.append((method, path, request.headers.get("authorization")))
        if self.before is not None:
            self.before(request)

        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"message": "backend failure"})

        parts = path.strip("/").split("/")

        if method == "GET" and parts[:2] == ["users", "profile"]:
            record = self.profiles.get(parts[2])
            if record is None:
                return httpx.Response(404, json={"message": "User not found"})
            return httpx.Response(200, json={"success": True, "data": dict(record)})

        if method == "PUT" and parts[:2] == ["users", "profile"]:
            record = self.profiles.get(parts[2])
            if record is None:
                return httpx.Response(404, json={"message": "User not found"})
            record.update(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "data": dict(record)})

        if method == "POST" and parts == ["users", "create"]:
            body = json.loads(request.content)
            needs_approval = body.get("providerType") in ("agent", "builder")
            record = make_profile(
                uid=body["firebaseUid"],
                user_type=body.get("userType", "seeker"),
                provider_type=body.get("providerType"),
                approval_status="pending" if needs_approval else "approved",
                name=body.get("name"),
                email=body.get("email"),
            )
            self.add(record)
            return httpx.Response(201, json={"success": True, "needsApproval": needs_approval})

        if method == "GET" and parts == ["users", "all"]:
            return httpx.Response(200, json={"success": True, "data": list(self.profiles.values())})

        if len(parts) >= 2 and parts[0] == "users":
            record = self.by_id(parts[1])
            if record is None:
                return httpx.Response(404, json={"message": "User not found"})
            action = parts[2] if len(parts) > 2 else None
            if method == "PATCH" and action == "approve":
                record["approvalStatus"] = "approved"
                record.pop("rejectionReason", None)
            elif method == "PATCH" and action == "reject":
                record["approvalStatus"] = "rejected"
                record["rejectionReason"] = json.loads(request.content)["reason"]
            elif method == "PATCH" and action == "toggle-status":
                record["isActive"] = not record["isActive"]
            elif method == "DELETE" and action is None:
                del self.profiles[record["firebaseUid"]]
            else:
                return httpx.Response(405, json={"message": "Not allowed"})
            return httpx.Response(200, json={"success": True})

        return httpx.Response(404, json={"message": "No route"})


# ============================================================
# Fixtures
# ============================================================
@pytest.fixture
def backend():
    return FakeUsersBackend()


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def make_api(backend):
    def factory(timeout: Optional[float] = None) -> UsersApi:
        return UsersApi(API_BASE, timeout=timeout, transport=httpx.MockTransport(backend))
    return factory


@pytest.fixture
def make_context(identity, make_api):
    def factory() -> UserContext:
        return UserContext(identity, make_api())
    return factory


@pytest.fixture
def client(make_context):
    """Test client for the shell, with the fake identity provider and API."""
    app = create_app(context_factory=make_context)
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
