"""
Session registry for meeting voice agent connections.

This module provides the SessionRegistry class which maps each live connection to
the one Session it owns, and hands out generation numbers used to recognise
pipeline results that belong to a session which has since been replaced, stopped
or torn down.
"""

import itertools
import logging
from typing import Dict, Optional

from meeting_agent.config.constants import LOGGER_NAME
from meeting_agent.models.session import Session, SessionState

logger = logging.getLogger(LOGGER_NAME)


class SessionRegistry:
    """
    Registry of sessions keyed by connection identity.

    Holds exactly one Session object per connection. Every change of the session a
    connection owns (replacement, explicit stop, removal) assigns the connection a
    new generation number drawn from a single monotonically increasing counter, so
    a generation number is never reused, even across connections.
    """

    def __init__(self):
        """Initialize empty session and generation maps."""
        self._sessions: Dict[str, Session] = {}
        self._generations: Dict[str, int] = {}
        self._counter = itertools.count(1)

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, connection_id: str):
        return connection_id in self._sessions

    def get(self, connection_id: str) -> Optional[Session]:
        return self._sessions.get(connection_id)

    def get_or_create(self, connection_id: str) -> Session:
        """
        Get the session owned by a connection, creating an Idle one if there is none.

        Args:
            connection_id: Identity of the physical connection

        Returns:
            The connection's current Session
        """
        session = self._sessions.get(connection_id)
        if session is None:
            session = Session()
            self._sessions[connection_id] = session
            self._generations[connection_id] = next(self._counter)
            logger.debug(f"Created idle session for connection: {connection_id}")
        return session

    def replace(self, connection_id: str, session: Session) -> int:
        """
        Make ``session`` the connection's session, finalizing any previous one.

        Args:
            connection_id: Identity of the physical connection
            session: The new session

        Returns:
            The generation number assigned to the new session
        """
        previous = self._sessions.get(connection_id)
        if previous is not None and previous is not session:
            previous.finalize()
        self._sessions[connection_id] = session
        generation = self.advance(connection_id)
        logger.info(
            f"Connection {connection_id} now owns session {session.session_id} (generation {generation})"
        )
        return generation

    def advance(self, connection_id: str) -> int:
        """Invalidate outstanding work for the connection's current session."""
        generation = next(self._counter)
        self._generations[connection_id] = generation
        return generation

    def generation(self, connection_id: str) -> Optional[int]:
        return self._generations.get(connection_id)

    def is_current(self, connection_id: str, generation: int) -> bool:
        """Whether ``generation`` still identifies the connection's live session."""
        return connection_id in self._sessions and self._generations.get(connection_id) == generation

    def remove(self, connection_id: str) -> Optional[Session]:
        """
        Tear down the connection's session and forget the connection.

        Args:
            connection_id: Identity of the physical connection

        Returns:
            The removed session, or None if the connection had none
        """
        session = self._sessions.pop(connection_id, None)
        self._generations.pop(connection_id, None)
        if session is not None:
            session.finalize()
            logger.info(f"Session released for connection: {connection_id}")
        return session

    def active_count(self) -> int:
        return sum(1 for s in self._sessions.values() if s.state == SessionState.ACTIVE)
