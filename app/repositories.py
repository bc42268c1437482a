"""SQLite-backed chat persistence."""
from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from .exceptions import ChatNotFoundError
from .models import ChatDetail, ChatSummary, Message, MessageRole, StoredCitation

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
TITLE_LIMIT = 50
TITLE_CUT = 47

SCHEMA = """
CREATE TABLE IF NOT EXISTS chats (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL DEFAULT 'New Chat',
    citation_panel_open INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS messages (
    id TEXT PRIMARY KEY,
    chat_id TEXT NOT NULL REFERENCES chats(id) ON DELETE CASCADE,
    role TEXT NOT NULL,
    content TEXT NOT NULL,
    completion_tokens INTEGER,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS citations (
    id TEXT PRIMARY KEY,
    message_id TEXT NOT NULL REFERENCES messages(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    authors TEXT NOT NULL,
    year INTEGER,
    journal TEXT,
    url TEXT
);
CREATE INDEX IF NOT EXISTS idx_messages_chat ON messages(chat_id, created_at);
CREATE INDEX IF NOT EXISTS idx_citations_message ON citations(message_id);
CREATE INDEX IF NOT EXISTS idx_chats_updated_at ON chats(updated_at);
"""


def generate_title(content: str) -> str:
    """Derive a chat title from the opening user message."""

    clean = content.strip()
    if len(clean) > TITLE_LIMIT:
        return f"{clean[:TITLE_CUT]}..."
    return clean or DEFAULT_TITLE


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


class ChatStore:
    """Chats, their messages and message citations in a single SQLite file.

    Each operation opens its own connection so the store can be shared across
    request handlers.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._initialized = False

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if not self._initialized:
            self._init_database()
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()
        self._initialized = True
        logger.debug("Chat database ready at %s", self.db_path)

    @staticmethod
    def _summary(row: sqlite3.Row) -> ChatSummary:
        return ChatSummary(
            id=row["id"],
            title=row["title"],
            citation_panel_open=bool(row["citation_panel_open"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _citation(row: sqlite3.Row) -> StoredCitation:
        return StoredCitation(
            id=row["id"],
            title=row["title"],
            authors=json.loads(row["authors"]),
            year=row["year"],
            journal=row["journal"],
            url=row["url"],
        )

    def _citations_for(self, conn: sqlite3.Connection, message_id: str) -> List[StoredCitation]:
        rows = conn.execute(
            "SELECT * FROM citations WHERE message_id = ? ORDER BY rowid", (message_id,)
        ).fetchall()
        return [self._citation(row) for row in rows]

    def _message(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Message:
        return Message(
            id=row["id"],
            role=MessageRole(row["role"]),
            content=row["content"],
            completion_tokens=row["completion_tokens"],
            created_at=row["created_at"],
            citations=self._citations_for(conn, row["id"]),
        )

    @staticmethod
    def _require_chat(conn: sqlite3.Connection, chat_id: str) -> sqlite3.Row:
        row = conn.execute("SELECT * FROM chats WHERE id = ?", (chat_id,)).fetchone()
        if row is None:
            raise ChatNotFoundError(chat_id)
        return row

    def create_chat(self) -> ChatDetail:
        chat_id = _new_id()
        now = _now()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO chats (id, title, citation_panel_open, created_at, updated_at) "
                "VALUES (?, ?, 0, ?, ?)",
                (chat_id, DEFAULT_TITLE, now, now),
            )
        logger.info("Created chat %s", chat_id)
        return ChatDetail(
            id=chat_id,
            title=DEFAULT_TITLE,
            citation_panel_open=False,
            created_at=now,
            updated_at=now,
            messages=[],
        )

    def get_chat(self, chat_id: str) -> Optional[ChatDetail]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM chats WHERE id = ?", (chat_id,)).fetchone()
            if row is None:
                return None
            message_rows = conn.execute(
                "SELECT * FROM messages WHERE chat_id = ? ORDER BY created_at ASC, rowid ASC",
                (chat_id,),
            ).fetchall()
            messages = [self._message(conn, message_row) for message_row in message_rows]
        summary = self._summary(row)
        return ChatDetail(**summary.model_dump(), messages=messages)

    def list_chats(self) -> List[ChatSummary]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM chats ORDER BY updated_at DESC, rowid DESC"
            ).fetchall()
        return [self._summary(row) for row in rows]

    def add_message(
        self,
        chat_id: str,
        role: MessageRole | str,
        content: str,
        citations: Optional[Sequence[StoredCitation]] = None,
        completion_tokens: Optional[int] = None,
    ) -> Message:
        """Store a message with its citations and bump the chat's ``updated_at``.

        The first user message of an untitled chat also names the chat.
        """

        role = MessageRole(role)
        message_id = _new_id()
        now = _now()
        with self._connect() as conn:
            chat = self._require_chat(conn, chat_id)
            conn.execute(
                "INSERT INTO messages (id, chat_id, role, content, completion_tokens, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (message_id, chat_id, role.value, content, completion_tokens, now),
            )
            for citation in citations or []:
                conn.execute(
                    "INSERT INTO citations (id, message_id, title, authors, year, journal, url) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        _new_id(),
                        message_id,
                        citation.title,
                        json.dumps(list(citation.authors)),
                        citation.year,
                        citation.journal,
                        citation.url,
                    ),
                )

            title = chat["title"]
            if role is MessageRole.USER and title == DEFAULT_TITLE:
                (count,) = conn.execute(
                    "SELECT COUNT(*) FROM messages WHERE chat_id = ?", (chat_id,)
                ).fetchone()
                if count == 1:
                    title = generate_title(content)

            conn.execute(
                "UPDATE chats SET title = ?, updated_at = ? WHERE id = ?",
                (title, now, chat_id),
            )
            row = conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,)).fetchone()
            return self._message(conn, row)

    def set_citation_panel(self, chat_id: str, is_open: bool) -> None:
        self._update(chat_id, "citation_panel_open", int(is_open))

    def update_title(self, chat_id: str, title: str) -> None:
        self._update(chat_id, "title", title)

    def _update(self, chat_id: str, column: str, value: object) -> None:
        with self._connect() as conn:
            cursor = conn.execute(f"UPDATE chats SET {column} = ? WHERE id = ?", (value, chat_id))
            if cursor.rowcount == 0:
                raise ChatNotFoundError(chat_id)

    def delete_chat(self, chat_id: str) -> None:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM chats WHERE id = ?", (chat_id,))
            if cursor.rowcount == 0:
                raise ChatNotFoundError(chat_id)
        logger.info("Deleted chat %s", chat_id)
