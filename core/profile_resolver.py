# core/profile_resolver.py

"""
Profile resolver.

Fetches the marketplace profile for the signed-in identity and keeps it in
memory for the life of the session. It is the only writer of the profile.

Ordering rules:
  • nothing is fetched while the session holder is still loading;
  • a fetch belongs to the session generation it started in, and its
    result is dropped if the generation moved on (sign-out, user switch);
  • of overlapping fetches only the last one issued writes its result;
  • any failure clears the profile, stale data is never kept.
"""

import asyncio
from typing import Optional

from core.identity import Unsubscribe
from core.logging_config import logger
from core.session import Listener, Listeners, SessionHolder
from core.users_api import UsersApi
from models.auth import Session
from models.user import Profile


class ProfileResolver:
    def __init__(self, sessions: SessionHolder, api: UsersApi, timeout_seconds: float = 10.0):
        self._sessions = sessions
        self._api = api
        self._timeout = timeout_seconds

        self._profile: Optional[Profile] = None
        self._loading = True
        self._seen_generation: Optional[int] = None
        self._sequence = 0
        self._task: Optional[asyncio.Task] = None
        self._listeners = Listeners()

        self._unsubscribe = sessions.subscribe(self._on_session_change)
        self._on_session_change()

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def loading(self) -> bool:
        return self._loading

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._listeners.add(listener)

    def close(self):
        self._unsubscribe()
        self._cancel_inflight()
        self._listeners.clear()

    # ---------------------------------------------------------
    # Session changes
    # ---------------------------------------------------------
    def _on_session_change(self):
        if self._sessions.loading:
            return

        generation = self._sessions.generation
        if generation == self._seen_generation:
            return
        self._seen_generation = generation

        self._cancel_inflight()
        session = self._sessions.session

        if session is None:
            self._set(None)
            return

        # New identity: drop whatever belonged to the previous one before fetching
        self._profile = None
        self._loading = True
        self._listeners.notify()
        self._task = asyncio.get_running_loop().create_task(self._load(session, generation))

    def _cancel_inflight(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _load(self, session: Session, generation: int):
        sequence = self._next_sequence()
        profile = await self._fetch(session)
        if generation != self._sessions.generation:
            logger.info(f"Discarding profile fetched for stale session generation {generation}")
            return
        if sequence != self._sequence:
            logger.info("Discarding profile, a newer fetch was issued")
            return
        self._set(profile)

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    # ---------------------------------------------------------
    # Fetch
    # ---------------------------------------------------------
    async def _fetch(self, session: Session) -> Optional[Profile]:
        token = await self._sessions.get_token()
        if not token:
            logger.warning("No bearer token available, profile not fetched")
            return None

        try:
            return await asyncio.wait_for(
                self._api.get_user_profile(session.uid, token),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Profile fetch timed out after {self._timeout}s")
        except Exception as e:
            logger.warning(f"Failed to fetch user data: {e}")
        return None

    async def refresh(self) -> Optional[Profile]:
        """
        Re-fetch the profile for the current session. Safe to call
        repeatedly, e.g. while polling for an approval decision.
        """
        if self._sessions.loading:
            return self._profile

        if self._task is not None and not self._task.done():
            # A fetch for this identity is already running
            await asyncio.wait({self._task})
            return self._profile

        session = self._sessions.session
        generation = self._sessions.generation
        if session is None:
            self._set(None)
            return None

        sequence = self._next_sequence()
        profile = await self._fetch(session)
        if generation != self._sessions.generation:
            logger.info("Discarding refreshed profile, session changed meanwhile")
            return self._profile
        if sequence != self._sequence:
            # Overlapping refresh: only the last one issued may write
            logger.info("Discarding refreshed profile, a newer fetch was issued")
            return self._profile

        self._set(profile)
        return profile

    def _set(self, profile: Optional[Profile]):
        self._profile = profile
        self._loading = False
        self._listeners.notify()
