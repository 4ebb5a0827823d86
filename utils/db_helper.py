import os
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import List

from app.errors import DatabaseError
from app.state import LeaderboardRecord

DB_PATH = "data/leaderboard.db"


def _ensure_schema(conn):
    conn.execute("""
    CREATE TABLE IF NOT EXISTS race_results(
        id TEXT PRIMARY KEY,
        player_id TEXT NOT NULL,
        user_id TEXT,
        wpm REAL NOT NULL,
        accuracy REAL NOT NULL,
        errors INTEGER NOT NULL,
        updated_at TEXT NOT NULL
    );
    """)


def _row_to_record(row) -> LeaderboardRecord:
    return LeaderboardRecord(
        id=row[0],
        player_id=row[1],
        wpm=row[2],
        accuracy=row[3],
        error_count=row[4],
        updated_at=datetime.fromisoformat(row[5]),
    )


class SqliteLeaderboardStore:
    """Append-only race results in a local sqlite file."""

    def __init__(self, db_path: str = DB_PATH):
        self.db_path = str(db_path)

    def get_conn(self):
        folder = os.path.dirname(self.db_path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        _ensure_schema(conn)
        return conn

    def insert_result(self, player_id: str, user_id: str, wpm: float, accuracy: float, errors: int) -> LeaderboardRecord:
        record = LeaderboardRecord(
            id=uuid.uuid4().hex,
            player_id=player_id,
            wpm=wpm,
            accuracy=accuracy,
            error_count=errors,
            updated_at=datetime.now(timezone.utc),
        )
        conn = None
        try:
            conn = self.get_conn()
            conn.execute(
                "INSERT INTO race_results(id, player_id, user_id, wpm, accuracy, errors, updated_at) VALUES (?,?,?,?,?,?,?)",
                (record.id, player_id, user_id, wpm, accuracy, errors, record.updated_at.isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(str(e)) from e
        finally:
            if conn is not None:
                conn.close()
        return record

    def fetch_results(self) -> List[LeaderboardRecord]:
        conn = None
        try:
            conn = self.get_conn()
            rows = conn.execute(
                "SELECT id, player_id, wpm, accuracy, errors, updated_at FROM race_results ORDER BY updated_at"
            ).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(str(e)) from e
        finally:
            if conn is not None:
                conn.close()
        return [_row_to_record(r) for r in rows]
