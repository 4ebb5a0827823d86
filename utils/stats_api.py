import logging
from datetime import datetime, timezone
from typing import List

import requests

from app.errors import DatabaseError
from app.state import LeaderboardRecord

log = logging.getLogger(__name__)


def _parse_time(value) -> datetime:
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def record_from_json(item: dict) -> LeaderboardRecord:
    return LeaderboardRecord(
        id=str(item.get("id") or item.get("_id") or ""),
        player_id=str(item.get("playerId", "")),
        wpm=float(item.get("wpm", 0)),
        accuracy=float(item.get("accuracy", 0)),
        error_count=int(item.get("errors", 0)),
        updated_at=_parse_time(item.get("updatedAt")),
    )


class HttpLeaderboardStore:
    """Client for the /api/typing-stats endpoint."""

    def __init__(self, url: str, timeout: float = 5.0, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def insert_result(self, player_id: str, user_id: str, wpm: float, accuracy: float, errors: int) -> LeaderboardRecord:
        body = {
            "playerId": player_id,
            "userId": user_id,
            "stats": {"wpm": wpm, "errors": errors, "accuracy": accuracy},
        }
        try:
            resp = self.session.post(self.url, json=body, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise DatabaseError(f"Failed to save stats: {e}") from e
        try:
            return record_from_json(resp.json())
        except ValueError:
            # some servers answer 201 with an empty body
            return LeaderboardRecord("", player_id, wpm, accuracy, errors, datetime.now(timezone.utc))

    def fetch_results(self) -> List[LeaderboardRecord]:
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DatabaseError(f"Failed to fetch scores: {e}") from e
        if not isinstance(data, list):
            raise DatabaseError("Failed to fetch scores: expected a list")
        out = []
        for item in data:
            try:
                out.append(record_from_json(item))
            except (TypeError, ValueError, AttributeError) as e:
                log.warning("Skipping malformed leaderboard entry: %s", e)
        return out
