"""Conversation store: append-only log of chat turns per session."""
import itertools
import logging
import re
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
from supabase import create_client, Client

from models.conversation import Turn, HistoryEntry, USER_SENDER, AI_SENDER
from config import SUPABASE_URL, SUPABASE_KEY, CONVERSATION_BACKEND, CONVERSATION_TABLE

logger = logging.getLogger(__name__)

_FRACTION_RE = re.compile(r"\.(\d+)")


class StorageError(Exception):
    """Raised when the persistence layer cannot be read or rejects a write."""

    def __init__(self, message: str, operation: str, session_id: str):
        self.operation = operation
        self.session_id = session_id
        super().__init__(message)


class ConversationStore(ABC):
    """
    Append-only log of turns, grouped by session identifier.

    Backends supply three primitives (insert, newest-first fetch and
    chronological fetch); ordering and transcript shaping live here so every
    backend behaves identically.
    """

    def append_turn(self, session_id: str, user_message: str, assistant_reply: str) -> Turn:
        """
        Persist one immutable turn with a store-assigned timestamp.

        Args:
            session_id: Conversation identifier
            user_message: Text submitted by the user
            assistant_reply: Generated reply for this message

        Returns:
            The stored Turn

        Raises:
            StorageError: If the backend is unreachable or rejects the write
        """
        try:
            turn = self._insert(session_id, user_message, assistant_reply)
        except StorageError as e:
            logger.warning(f"Error adding turn to session {session_id}: {e}")
            raise
        except Exception as e:
            logger.warning(f"Error adding turn to session {session_id}: {e}")
            raise StorageError(f"Failed to store turn: {e}", "append_turn", session_id) from e

        logger.info(
            f"Added turn to session {session_id}",
            extra={"fields": {"session_id": session_id, "created_at": turn.created_at.isoformat()}}
        )
        return turn

    def recent_turns(self, session_id: str, limit: int) -> List[Turn]:
        """
        Get the most recent turns of a session in chronological order.

        Args:
            session_id: Conversation identifier
            limit: Maximum number of turns to return

        Returns:
            Up to ``limit`` turns, oldest first

        Raises:
            ValueError: If limit is negative
            StorageError: If the backend cannot be read
        """
        if limit < 0:
            raise ValueError("limit must be zero or positive")
        if limit == 0:
            return []

        newest_first = self.fetch_newest_first(session_id, limit)
        turns = self.chronological(newest_first)
        logger.debug(f"Retrieved {len(turns)} recent turns for session {session_id}")
        return turns

    def fetch_newest_first(self, session_id: str, limit: int) -> List[Turn]:
        """Fetch at most ``limit`` turns, newest first."""
        try:
            return self._select_newest_first(session_id, limit)
        except Exception as e:
            logger.warning(f"Error retrieving recent turns for session {session_id}: {e}")
            raise StorageError(f"Failed to read turns: {e}", "recent_turns", session_id) from e

    @staticmethod
    def chronological(newest_first: List[Turn]) -> List[Turn]:
        """Reorder a newest-first page of turns to oldest-first."""
        return list(reversed(newest_first))

    def full_history(self, session_id: str) -> List[HistoryEntry]:
        """
        Get the complete transcript of a session.

        Each turn becomes a user entry followed by an ai entry; turns are
        chronological.

        Raises:
            StorageError: If the backend cannot be read
        """
        try:
            turns = self._select_chronological(session_id)
        except Exception as e:
            logger.warning(f"Error retrieving history for session {session_id}: {e}")
            raise StorageError(f"Failed to read history: {e}", "full_history", session_id) from e

        entries: List[HistoryEntry] = []
        for turn in turns:
            entries.append(HistoryEntry(sender=USER_SENDER, text=turn.user_message))
            entries.append(HistoryEntry(sender=AI_SENDER, text=turn.assistant_reply))
        return entries

    @abstractmethod
    def _insert(self, session_id: str, user_message: str, assistant_reply: str) -> Turn:
        """Write one turn and return it as stored."""

    @abstractmethod
    def _select_newest_first(self, session_id: str, limit: int) -> List[Turn]:
        """Return at most ``limit`` turns ordered newest first."""

    @abstractmethod
    def _select_chronological(self, session_id: str) -> List[Turn]:
        """Return every turn of the session ordered oldest first."""


class SupabaseConversationStore(ConversationStore):
    """Conversation store backed by a Supabase PostgreSQL table."""

    def __init__(
        self,
        supabase_url: Optional[str] = SUPABASE_URL,
        supabase_key: Optional[str] = SUPABASE_KEY,
        table_name: str = CONVERSATION_TABLE
    ):
        """
        Initialize the store with a Supabase client.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key
            table_name: Table holding one row per turn

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")

        self.table_name = table_name
        self.client: Client = create_client(supabase_url, supabase_key)
        logger.info(f"SupabaseConversationStore initialized with table: {table_name}")

    def _insert(self, session_id: str, user_message: str, assistant_reply: str) -> Turn:
        # created_at is filled in by the database default
        result = self.client.table(self.table_name).insert({
            "session_id": session_id,
            "message": user_message,
            "reply": assistant_reply,
        }).execute()

        if not result.data:
            raise StorageError("Insert returned no row", "append_turn", session_id)
        return self._row_to_turn(result.data[0])

    def _select_newest_first(self, session_id: str, limit: int) -> List[Turn]:
        result = (
            self.client.table(self.table_name)
            .select("*")
            .eq("session_id", session_id)
            .order("created_at", desc=True)
            .order("id", desc=True)
            .limit(limit)
            .execute()
        )
        return [self._row_to_turn(row) for row in result.data or []]

    def _select_chronological(self, session_id: str) -> List[Turn]:
        result = (
            self.client.table(self.table_name)
            .select("*")
            .eq("session_id", session_id)
            .order("created_at", desc=False)
            .order("id", desc=False)
            .execute()
        )
        return [self._row_to_turn(row) for row in result.data or []]

    def _row_to_turn(self, row: Dict[str, Any]) -> Turn:
        return Turn(
            session_id=row["session_id"],
            user_message=row["message"],
            assistant_reply=row["reply"],
            created_at=self._parse_timestamp(row["created_at"])
        )

    @staticmethod
    def _parse_timestamp(timestamp_str: str) -> datetime:
        """
        Parse a timestamp string returned by Supabase.

        PostgreSQL may return fractional seconds with fewer or more than six
        digits and a trailing 'Z'; both are normalized before parsing.
        """
        timestamp_str = timestamp_str.replace("Z", "+00:00")
        timestamp_str = _FRACTION_RE.sub(
            lambda m: "." + m.group(1)[:6].ljust(6, "0"), timestamp_str, count=1
        )
        return datetime.fromisoformat(timestamp_str)


class InMemoryConversationStore(ConversationStore):
    """Process-local conversation store for development and tests."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            clock: Source of creation timestamps (defaults to UTC now)
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rows: Dict[str, List[Tuple[int, Turn]]] = {}
        self._sequence = itertools.count()
        self._lock = threading.Lock()
        logger.info("InMemoryConversationStore initialized")

    def _insert(self, session_id: str, user_message: str, assistant_reply: str) -> Turn:
        with self._lock:
            turn = Turn(
                session_id=session_id,
                user_message=user_message,
                assistant_reply=assistant_reply,
                created_at=self._clock()
            )
            self._rows.setdefault(session_id, []).append((next(self._sequence), turn))
            return turn

    def _ordered(self, session_id: str) -> List[Turn]:
        with self._lock:
            rows = list(self._rows.get(session_id, []))
        rows.sort(key=lambda row: (row[1].created_at, row[0]))
        return [turn for _, turn in rows]

    def _select_newest_first(self, session_id: str, limit: int) -> List[Turn]:
        return list(reversed(self._ordered(session_id)))[:limit]

    def _select_chronological(self, session_id: str) -> List[Turn]:
        return self._ordered(session_id)


def create_conversation_store(backend: str = CONVERSATION_BACKEND) -> ConversationStore:
    """
    Build the conversation store selected by configuration.

    Args:
        backend: "supabase" or "memory"

    Raises:
        ValueError: For an unknown backend name
    """
    if backend == "supabase":
        return SupabaseConversationStore()
    if backend == "memory":
        logger.warning("Using in-memory conversation store; history is lost on restart")
        return InMemoryConversationStore()
    raise ValueError(f"Unknown conversation backend: {backend}")
