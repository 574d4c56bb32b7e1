# tests/test_profile_resolver.py

"""
Tests for profile resolution: ordering, failure handling,
refresh and discard-on-invalidate.
"""

import asyncio

import httpx

from core.profile_resolver import ProfileResolver
from core.session import SessionHolder
from core.users_api import UsersApi
from models.enums import ApprovalStatus
from tests.conftest import API_BASE, FakeIdentity, make_profile, make_session


async def settle(resolver: ProfileResolver, limit: float = 2.0):
    """Wait until the resolver stops loading."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + limit
    while resolver.loading and loop.time() < deadline:
        await asyncio.sleep(0.01)


def test_no_fetch_before_session_resolves(backend, make_api):
    backend.add(make_profile("uid-1"))

    async def scenario():
        identity = FakeIdentity(deliver_initial=False)
        holder = SessionHolder(identity)
        resolver = ProfileResolver(holder, make_api())
        await holder.start()

        await asyncio.sleep(0.05)
        assert backend.calls == []
        assert resolver.loading

        identity.emit(make_session("uid-1"))
        await settle(resolver)
        return resolver.profile

    profile = asyncio.run(scenario())
    assert profile is not None
    assert backend.calls == [("GET", "/users/profile/uid-1", "Bearer token-uid-1")]


def test_no_session_means_no_profile(backend, make_api):
    async def scenario():
        holder = SessionHolder(FakeIdentity())
        resolver = ProfileResolver(holder, make_api())
        await holder.start()
        return resolver.loading, resolver.profile

    loading, profile = asyncio.run(scenario())
    assert not loading
    assert profile is None
    assert backend.calls == []


def test_fetch_failure_clears_profile(backend, make_api):
    backend.add(make_profile("uid-1"))

    async def scenario():
        identity = FakeIdentity(session=make_session("uid-1"))
        holder = SessionHolder(identity)
        resolver = ProfileResolver(holder, make_api())
        await holder.start()
        await settle(resolver)
        assert resolver.profile is not None

        backend.fail_status = 500
        await resolver.refresh()
        return resolver.loading, resolver.profile

    loading, profile = asyncio.run(scenario())
    assert not loading
    assert profile is None


def test_malformed_payload_is_a_failure(backend, make_api):
    backend.add(make_profile("uid-1", user_type="provider"))  # no providerType

    async def scenario():
        holder = SessionHolder(FakeIdentity(session=make_session("uid-1")))
        resolver = ProfileResolver(holder, make_api())
        await holder.start()
        await settle(resolver)
        return resolver.loading, resolver.profile

    loading, profile = asyncio.run(scenario())
    assert not loading
    assert profile is None


def test_missing_token_is_a_failure(backend, make_api):
    backend.add(make_profile("uid-1"))

    async def scenario():
        identity = FakeIdentity(session=make_session("uid-1"))
        identity.token_error = RuntimeError("no refresh token")
        holder = SessionHolder(identity)
        resolver = ProfileResolver(holder, make_api())
        await holder.start()
        await settle(resolver)
        return resolver.profile

    assert asyncio.run(scenario()) is None
    assert backend.calls == []


def test_timeout_clears_loading(backend, make_api):
    backend.add(make_profile("uid-1"))
    backend.delay = 1.0

    async def scenario():
        holder = SessionHolder(FakeIdentity(session=make_session("uid-1")))
        resolver = ProfileResolver(holder, make_api(), timeout_seconds=0.05)
        await holder.start()
        await settle(resolver)
        return resolver.loading, resolver.profile

    loading, profile = asyncio.run(scenario())
    assert not loading
    assert profile is None


def test_refresh_is_idempotent(backend, make_api):
    backend.add(make_profile("uid-1", user_type="provider", provider_type="agent", approval_status="pending"))

    async def scenario():
        holder = SessionHolder(FakeIdentity(session=make_session("uid-1")))
        resolver = ProfileResolver(holder, make_api())
        await holder.start()
        await settle(resolver)
        first = await resolver.refresh()
        second = await resolver.refresh()
        return first, second

    first, second = asyncio.run(scenario())
    assert first is not None
    assert first == second


def test_refresh_picks_up_approval(backend, make_api):
    record = backend.add(
        make_profile("uid-1", user_type="provider", provider_type="builder", approval_status="pending")
    )

    async def scenario():
        holder = SessionHolder(FakeIdentity(session=make_session("uid-1")))
        resolver = ProfileResolver(holder, make_api())
        await holder.start()
        await settle(resolver)
        assert resolver.profile.approval_status == ApprovalStatus.pending

        record["approvalStatus"] = "approved"
        return await resolver.refresh()

    profile = asyncio.run(scenario())
    assert profile.approval_status == ApprovalStatus.approved


def test_sign_out_during_fetch_discards_result(backend, make_api):
    backend.add(make_profile("uid-1", user_type="admin"))

    async def scenario():
        backend.gate = asyncio.Event()
        identity = FakeIdentity(session=make_session("uid-1"))
        holder = SessionHolder(identity)
        resolver = ProfileResolver(holder, make_api())
        await holder.start()

        # Let the fetch reach the backend, then sign out while it is pending
        while not backend.calls:
            await asyncio.sleep(0.01)
        identity.emit(None)
        backend.gate.set()
        await asyncio.sleep(0.05)
        return resolver.loading, resolver.profile

    loading, profile = asyncio.run(scenario())
    assert not loading
    assert profile is None


def test_user_switch_never_shows_previous_profile(backend, make_api):
    backend.add(make_profile("uid-1", user_type="admin"))
    backend.add(make_profile("uid-2", user_type="seeker"))

    async def scenario():
        identity = FakeIdentity(session=make_session("uid-1"))
        holder = SessionHolder(identity)
        resolver = ProfileResolver(holder, make_api())
        await holder.start()
        await settle(resolver)
        assert resolver.profile.external_id == "uid-1"

        identity.emit(make_session("uid-2"))
        # Previous identity's record is gone as soon as the session changes
        assert resolver.profile is None
        assert resolver.loading
        await settle(resolver)
        return resolver.profile

    profile = asyncio.run(scenario())
    assert profile.external_id == "uid-2"


def test_stale_refresh_is_discarded(backend, make_api):
    backend.add(make_profile("uid-1", user_type="admin"))

    async def scenario():
        identity = FakeIdentity(session=make_session("uid-1"))
        holder = SessionHolder(identity)
        resolver = ProfileResolver(holder, make_api())
        await holder.start()
        await settle(resolver)

        backend.gate = asyncio.Event()
        calls_before = len(backend.calls)
        refresh = asyncio.create_task(resolver.refresh())
        while len(backend.calls) == calls_before:
            await asyncio.sleep(0.01)
        identity.emit(None)
        backend.gate.set()
        await refresh
        return resolver.profile

    assert asyncio.run(scenario()) is None


def test_overlapping_refreshes_keep_newest_result(backend):
    record = backend.add(
        make_profile("uid-1", user_type="provider", provider_type="agent", approval_status="pending")
    )
    slow_next = {"armed": False}

    async def handler(request):
        # The armed call answers from the record as it is now, then stalls
        if slow_next["armed"]:
            slow_next["armed"] = False
            response = await backend(request)
            await asyncio.sleep(0.2)
            return response
        return await backend(request)

    api = UsersApi(API_BASE, transport=httpx.MockTransport(handler))

    async def scenario():
        holder = SessionHolder(FakeIdentity(session=make_session("uid-1")))
        resolver = ProfileResolver(holder, api)
        await holder.start()
        await settle(resolver)

        slow_next["armed"] = True
        calls_before = len(backend.calls)
        older = asyncio.create_task(resolver.refresh())
        while len(backend.calls) == calls_before:
            await asyncio.sleep(0.01)

        record["approvalStatus"] = "approved"
        newer = await resolver.refresh()
        older_result = await older
        return newer, older_result, resolver.profile

    newer, older_result, cached = asyncio.run(scenario())
    assert newer.approval_status == ApprovalStatus.approved
    assert older_result.approval_status == ApprovalStatus.approved
    assert cached.approval_status == ApprovalStatus.approved
