import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

from src.core.errors import StorageError


class MessageLedger:
    """Bounded per-chat record of recently seen message ids.

    Only ids are stored; message content always comes from Telegram. Each
    chat keeps at most ``capacity`` ids, trimmed on every insert inside the
    same transaction so readers never observe an untrimmed sequence.
    """

    def __init__(self, db_path: str, capacity: int = 200):
        if capacity < 1:
            raise ValueError("Ledger capacity must be at least 1.")
        self.capacity = int(capacity)
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StorageError(f"Could not open ledger at {db_path}: {exc}") from exc
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        statements = [
            "PRAGMA journal_mode=WAL;",
            """
            CREATE TABLE IF NOT EXISTS ledger (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                chat_id TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                message_id INTEGER NOT NULL
            );
            """,
            "CREATE INDEX IF NOT EXISTS idx_ledger_chat_id ON ledger(chat_id, id);",
        ]
        try:
            with self._lock:
                for stmt in statements:
                    self._conn.execute(stmt)
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not initialize ledger schema: {exc}") from exc

    def add_message_id(self, chat_id: int, message_id: int) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    "INSERT INTO ledger(chat_id, timestamp, message_id) VALUES (?, ?, ?)",
                    (str(chat_id), now, int(message_id)),
                )
                self._conn.execute(
                    """
                    DELETE FROM ledger
                    WHERE chat_id = ?
                      AND id NOT IN (
                        SELECT id FROM ledger
                        WHERE chat_id = ?
                        ORDER BY id DESC
                        LIMIT ?
                      )
                    """,
                    (str(chat_id), str(chat_id), self.capacity),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Could not record message {message_id} for chat {chat_id}: {exc}") from exc

    def get_message_ids(self, chat_id: int, count: int) -> list[int]:
        if count <= 0:
            return []
        try:
            with self._lock:
                rows = self._conn.execute(
                    """
                    SELECT message_id
                    FROM ledger
                    WHERE chat_id = ?
                    ORDER BY id DESC
                    LIMIT ?
                    """,
                    (str(chat_id), int(count)),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not read message ids for chat {chat_id}: {exc}") from exc
        return [int(row["message_id"]) for row in rows]

    def count(self, chat_id: int) -> int:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT COUNT(*) AS total FROM ledger WHERE chat_id = ?",
                    (str(chat_id),),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not count message ids for chat {chat_id}: {exc}") from exc
        return int(row["total"])

    def close(self) -> None:
        with self._lock:
            self._conn.close()
