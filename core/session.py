# core/session.py

"""
Session holder.

Owns the single identity-provider subscription for the life of the
application and exposes the current session, a loading flag that stays
True until the provider reports its first state, and a bearer-token
accessor that never raises.
"""

import asyncio
from typing import Callable, List, Optional

from core.identity import IdentityProvider, Unsubscribe
from core.logging_config import logger
from models.auth import Session


Listener = Callable[[], None]


class Listeners:
    """Plain observer list. Listeners run synchronously, in registration order."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def add(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self):
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.error(f"Session listener failed: {e}", exc_info=True)

    def clear(self):
        self._listeners.clear()


class SessionHolder:
    def __init__(self, identity: IdentityProvider):
        self._identity = identity
        self._session: Optional[Session] = None
        self._loading = True
        self._generation = 0
        self._listeners = Listeners()
        self._unsubscribe: Optional[Unsubscribe] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # ---------------------------------------------------------
    # State
    # ---------------------------------------------------------
    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def generation(self) -> int:
        """Bumped whenever the signed-in identity changes (including to none)."""
        return self._generation

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._listeners.add(listener)

    # ---------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------
    async def start(self):
        """
        Subscribe to the identity provider. Safe to call more than once.

        Subscribing reads the stored session, which may refresh an expired
        token over the network, so it runs off the event loop. The first
        state is applied before this returns.
        """
        if self._loop is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._unsubscribe = await asyncio.to_thread(
            self._identity.subscribe, self._on_identity_change
        )
        logger.info("Session holder subscribed to identity provider")

    def shutdown(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()
        logger.info("Session holder unsubscribed")

    def _on_identity_change(self, session: Optional[Session]):
        # The provider may call back from a worker thread (blocking sign-in).
        loop = self._loop
        if loop is None or loop.is_closed():
            self._apply(session)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._apply(session)
        else:
            loop.call_soon_threadsafe(self._apply, session)

    def _apply(self, session: Optional[Session]):
        previous_uid = self._session.uid if self._session else None
        new_uid = session.uid if session else None
        first_state = self._loading

        self._session = session
        self._loading = False

        # Token refreshes keep the same uid and must not invalidate in-flight work
        if first_state or previous_uid != new_uid:
            self._generation += 1
            logger.info(
                f"Session changed: {'signed in' if new_uid else 'signed out'} "
                f"(generation {self._generation})"
            )

        self._listeners.notify()

    # ---------------------------------------------------------
    # Operations
    # ---------------------------------------------------------
    async def get_token(self) -> Optional[str]:
        """
        Fresh bearer token, or None. None is the normal unauthenticated
        answer; provider failures are logged and also return None.
        """
        if self._session is None:
            return None
        try:
            return await asyncio.to_thread(self._identity.get_token)
        except Exception as e:
            logger.error(f"Error getting token: {e}")
            return None

    async def sign_out(self):
        try:
            await asyncio.to_thread(self._identity.sign_out)
        except Exception as e:
            logger.warning(f"Identity provider sign-out failed: {e}")
        # Apply locally as well, so in-flight work is invalidated right now
        self._apply(None)
