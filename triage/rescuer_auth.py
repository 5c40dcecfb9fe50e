"""
Demo rescuer login: one hardcoded account and a session token.

There is no real security here. The session lives in a caller-supplied
mapping (Streamlit's session_state in the app) rather than a module global.
"""
import random
import string
import time
from dataclasses import dataclass
from typing import MutableMapping, Optional

from triage.config import SETTINGS, Settings
from triage.logger import get_logger

logger = get_logger(__name__)

SESSION_KEY = "rescuer_session"


@dataclass(frozen=True)
class RescuerSession:
    rescuer_id: str
    name: str
    token: str
    email: str


@dataclass(frozen=True)
class LoginResult:
    ok: bool
    error: Optional[str] = None
    session: Optional[RescuerSession] = None


def _new_token() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class RescuerAuth:
    def __init__(self, state: MutableMapping, settings: Settings = SETTINGS):
        self.state = state
        self.settings = settings

    def login(self, email: str, password: str) -> LoginResult:
        if email != self.settings.rescuer_email or password != self.settings.rescuer_password:
            logger.warning("Rescuer login failed for %s", email)
            return LoginResult(ok=False, error="Invalid credentials")

        session = RescuerSession(
            rescuer_id=self.settings.rescuer_id,
            name=self.settings.rescuer_name,
            token=_new_token(),
            email=self.settings.rescuer_email,
        )
        self.state[SESSION_KEY] = session
        logger.info("Rescuer %s logged in", session.rescuer_id)
        return LoginResult(ok=True, session=session)

    def logout(self):
        session = self.state.pop(SESSION_KEY, None)
        if session is not None:
            logger.info("Rescuer %s logged out", session.rescuer_id)

    def current_session(self) -> Optional[RescuerSession]:
        session = self.state.get(SESSION_KEY)
        if session is not None and not isinstance(session, RescuerSession):
            # Unrecognised leftover; treat as logged out.
            self.state.pop(SESSION_KEY, None)
            return None
        return session

    def is_logged_in(self) -> bool:
        return self.current_session() is not None
