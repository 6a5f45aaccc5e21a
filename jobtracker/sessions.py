"""
Per-user application state registry.

Maps an authenticated user id to that user's ApplicationState. The state is
created and loaded on the user's first request and torn down on sign-out,
so a list is never shared across identities.
"""
from typing import Dict
import logging

from .state import ApplicationState
from .store import ApplicationStore

logger = logging.getLogger("jobtracker.sessions")


class StateRegistry:

    def __init__(self, store: ApplicationStore = None):
        self._store = store or ApplicationStore()
        self._states: Dict[int, ApplicationState] = {}

    async def get(self, user_id: int) -> ApplicationState:
        """Return the user's state, loading it if it has not loaded yet."""
        state = self._states.get(user_id)
        if state is None:
            state = ApplicationState(self._store)
            state.subscribe(
                lambda snapshot: logger.debug(f"User {user_id}: {len(snapshot)} applications")
            )
            self._states[user_id] = state

        if state.is_loading:
            await state.wait_until_loaded()
        elif not state.loaded:
            # Also retries a load that failed on an earlier request
            await state.establish_session(user_id)
        return state

    def sign_out(self, user_id: int) -> None:
        state = self._states.pop(user_id, None)
        if state is not None:
            state.end_session()
            logger.info(f"Ended application session for user {user_id}")

    def clear(self) -> None:
        for user_id in list(self._states):
            self.sign_out(user_id)


registry = StateRegistry()


def get_state_registry() -> StateRegistry:
    """FastAPI dependency returning the process-wide registry."""
    return registry
