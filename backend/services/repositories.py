"""Attribution sinks for scored requests (in-memory).

- ScoreRepository: audit log of every scored profile.
- AnalysisRepository: stored {input, output} analyses addressable by id.

Storage engines are out of scope; these keep the async interface a real
backend would expose.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from models.schemas.profile import Profile

logger = logging.getLogger(__name__)


class AnalysisNotFound(LookupError):
    """No stored analysis has the requested id."""

    def __init__(self, analysis_id: str) -> None:
        super().__init__(f"Analysis not found: {analysis_id}")
        self.analysis_id = analysis_id


class ScoreRepository:
    def __init__(self) -> None:
        self._rows: list[tuple[Profile, datetime]] = []

    async def create(self, profile: Profile) -> Profile:
        self._rows.append((profile, datetime.now(timezone.utc)))
        return profile

    async def find_all(self) -> list[Profile]:
        return [p for p, _ in self._rows]


class AnalysisRepository:
    def __init__(self) -> None:
        self._rows: dict[str, dict[str, Any]] = {}

    async def save(self, input: dict[str, Any], output: dict[str, Any]) -> str:
        analysis_id = str(uuid.uuid4())
        self._rows[analysis_id] = {
            "id": analysis_id,
            "input": input,
            "output": output,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        logger.debug("Stored analysis %s", analysis_id)
        return analysis_id

    async def get(self, analysis_id: str) -> dict[str, Any]:
        row = self._rows.get(analysis_id)
        if row is None:
            raise AnalysisNotFound(analysis_id)
        return row

    async def find_by_email(self, email: str) -> list[dict[str, Any]]:
        return [
            {"id": row["id"], "input": row["input"]}
            for row in self._rows.values()
            if row["input"].get("email") == email
        ]
