"""
Storage of finalized workout sessions.

Sessions live in the append-only ``users/<uid>/workoutSessions``
collection of a DocumentStore.
"""

from ..core.config import SESSIONS_COLLECTION, USERS_COLLECTION
from ..core.models import SessionRecord
from .document_store import DocumentStore
from .serializers import dict_to_session_record, session_record_to_dict


def sessions_path(user_id: str) -> str:
    return f"{USERS_COLLECTION}/{user_id}/{SESSIONS_COLLECTION}"


class SessionRepository:
    """Reads and appends SessionRecords for one user."""

    def __init__(self, store: DocumentStore, user_id: str):
        self.store = store
        self.user_id = user_id

    def append(self, record: SessionRecord) -> str:
        """
        Persist a finalized session.

        Retrying with the same record is safe: it is stored once.

        Returns:
            The stored document id (the session id)

        Raises:
            PersistenceUnavailableError: If the store cannot be written
        """
        return self.store.append(sessions_path(self.user_id), session_record_to_dict(record))

    def load_all(self) -> list[SessionRecord]:
        """
        Load every stored session, oldest first.

        Raises:
            ValidationError: If a stored session is malformed
        """
        records = [dict_to_session_record(d) for d in self.store.list(sessions_path(self.user_id))]
        records.sort(key=lambda r: r.start_time)
        return records

    def load_recent(self, limit: int = 50) -> list[SessionRecord]:
        """Most recent sessions first, at most ``limit``."""
        return list(reversed(self.load_all()))[:limit]
