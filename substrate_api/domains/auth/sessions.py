"""Session registry: the active principal plus the user's device sessions."""

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from substrate_api.shared.exceptions import ForbiddenError, NotFoundError
from substrate_api.shared.utils import utcnow

logger = logging.getLogger(__name__)


class DeviceSession(BaseModel):
    id: str
    user_id: str
    device: str = "Unknown device"
    browser: str = "Unknown browser"
    created_at: datetime = Field(default_factory=utcnow)
    last_active_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeviceSessionResponse(DeviceSession):
    is_current: bool


class SessionRegistry:
    """
    Tracks zero or one active principal and a registry of device sessions.

    Login and registration open a device session and make its user the
    active principal; logout clears the principal and closes that session.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, DeviceSession] = {}
        self._current_session_id: Optional[str] = None

    @property
    def current_user_id(self) -> Optional[str]:
        session = self.current_session
        return session.user_id if session else None

    @property
    def current_session(self) -> Optional[DeviceSession]:
        if self._current_session_id is None:
            return None
        return self._sessions.get(self._current_session_id)

    def open(
        self,
        user_id: str,
        device: Optional[str] = None,
        browser: Optional[str] = None,
    ) -> DeviceSession:
        session = DeviceSession(
            id=f"session-{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            device=device or "Unknown device",
            browser=browser or "Unknown browser",
        )
        self._sessions[session.id] = session
        self._current_session_id = session.id
        logger.info(f"Opened session {session.id} for user {user_id}")
        return session

    def close_current(self) -> None:
        if self._current_session_id is not None:
            self._sessions.pop(self._current_session_id, None)
            logger.info(f"Closed session {self._current_session_id}")
        self._current_session_id = None

    def get(self, session_id: str) -> Optional[DeviceSession]:
        return self._sessions.get(session_id)

    def touch(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session:
            self._sessions[session_id] = session.model_copy(
                update={"last_active_at": utcnow()}
            )

    def list_for_user(self, user_id: str) -> List[DeviceSessionResponse]:
        return [
            DeviceSessionResponse(
                **session.model_dump(), is_current=session.id == self._current_session_id
            )
            for session in self._sessions.values()
            if session.user_id == user_id
        ]

    def revoke(self, session_id: str, requester_id: str) -> None:
        """
        Revoke a device session owned by the requester.

        Raises:
            NotFoundError: If the session does not exist
            ForbiddenError: If the session belongs to another user
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session not found: {session_id}")
        if session.user_id != requester_id:
            raise ForbiddenError("Cannot revoke a session owned by another user")

        del self._sessions[session_id]
        if session_id == self._current_session_id:
            self._current_session_id = None
        logger.info(f"Revoked session {session_id} for user {requester_id}")
