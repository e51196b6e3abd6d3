import logging
import threading
from typing import Dict, List

from ..models import Message

logger = logging.getLogger(__name__)


class ConversationStore:
    """In-memory per-session message log, kept for the process lifetime.

    Sessions are never evicted. Every access goes through one lock, so
    concurrent writers (threads or tasks) cannot corrupt a session's list.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, List[Message]] = {}
        self._lock = threading.Lock()

    def initialize_session(self, session_id: str, system_prompt: str) -> None:
        """Create the session with a single system message. No-op if it exists."""
        with self._lock:
            if session_id in self._sessions:
                return
            self._sessions[session_id] = [Message.system(system_prompt)]
        logger.info("Initialized conversation for session: %s", session_id)

    def get_history(self, session_id: str) -> List[Message]:
        """Return a snapshot of the session's messages ([] for unknown sessions)."""
        with self._lock:
            return list(self._sessions.get(session_id, []))

    def add_message(self, session_id: str, message: Message) -> None:
        """Append a message, creating an empty session if needed."""
        with self._lock:
            self._sessions.setdefault(session_id, []).append(message)
        logger.debug("Added message to session %s: role=%s", session_id, message.role)

    def clear_session(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
        logger.info("Cleared conversation for session: %s", session_id)

    def clear_all(self) -> None:
        with self._lock:
            self._sessions.clear()
        logger.info("Cleared all conversations")

    def has_session(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def get_message_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._sessions.get(session_id, []))

    def get_active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)
