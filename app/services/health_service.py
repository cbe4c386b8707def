"""Health record service.

Every user has at most one ``HealthData`` row. It is created on the first
write, never at registration, so all readers treat a missing row as an empty
record.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.core.errors import InvalidInputError, NotFoundError
from app.models.health_data import HealthData
from app.models.user import User, utcnow

logger = logging.getLogger(__name__)

RECENT_RECORDINGS_LIMIT = 10
WEEK = timedelta(days=7)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _timestamp(value: Optional[datetime] = None) -> str:
    """ISO-8601 UTC string as stored inside the JSON documents."""
    if value is None:
        value = utcnow()
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class HealthService:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    # ── aggregate access ──────────────────────────────────────────────

    def _find(self) -> Optional[HealthData]:
        return self.db.query(HealthData).filter(HealthData.user_id == self.user.id).first()

    def _find_or_create(self) -> HealthData:
        """Return the user's aggregate, inserting an empty one if absent.

        Uses INSERT ... ON CONFLICT DO NOTHING so concurrent first writes
        end up sharing one row.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            health_data = self._find()
            if health_data is None:
                health_data = HealthData(user_id=self.user.id, cough_history=[])
                self.db.add(health_data)
                self.db.flush()
            return health_data

        now = utcnow()
        stmt = insert(HealthData).values(
            id=uuid.uuid4(),
            user_id=self.user.id,
            cough_history=[],
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=["user_id"])
        self.db.execute(stmt)
        return self._find()

    def _save(self, health_data: HealthData) -> None:
        health_data.updated_at = utcnow()
        self.db.commit()

    # ── recordings ────────────────────────────────────────────────────

    def add_recording(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        if fields.get("duration") is None:
            raise InvalidInputError("Recording duration is required")

        recording = {key: value for key, value in fields.items() if value is not None}
        recording["id"] = str(uuid.uuid4())
        recording["timestamp"] = _timestamp(fields.get("timestamp"))
        recording.setdefault("type", "cough")

        health_data = self._find_or_create()
        # Newest first
        health_data.cough_history = [recording] + list(health_data.cough_history or [])
        self._save(health_data)

        logger.info("Added recording %s for user %s", recording["id"], self.user.id)
        return recording

    def list_recordings(self) -> List[Dict[str, Any]]:
        health_data = self._find()
        if health_data is None:
            return []
        return list(health_data.cough_history or [])

    def delete_recording(self, recording_id: str) -> None:
        health_data = self._find()
        if health_data is None:
            raise NotFoundError("No health data found")

        history = list(health_data.cough_history or [])
        remaining = [rec for rec in history if rec.get("id") != recording_id]
        if len(remaining) == len(history):
            raise NotFoundError("Recording not found")

        health_data.cough_history = remaining
        self._save(health_data)
        logger.info("Deleted recording %s for user %s", recording_id, self.user.id)

    # ── snapshots ─────────────────────────────────────────────────────

    def save_risk_assessment(
        self,
        risk_level: str,
        percentage: float,
        score: Optional[float] = None,
        questions: Any = None,
        answers: Any = None,
    ) -> Dict[str, Any]:
        if not risk_level or percentage is None:
            raise InvalidInputError("Risk level and percentage are required")
        if not 0 <= percentage <= 100:
            raise InvalidInputError("Percentage must be between 0 and 100")

        risk_data = {
            "questions": questions,
            "answers": answers,
            "riskLevel": risk_level,
            "percentage": percentage,
            "score": score,
            "timestamp": _timestamp(),
        }
        health_data = self._find_or_create()
        health_data.risk_test_data = risk_data
        self._save(health_data)
        return risk_data

    def get_risk_assessment(self) -> Optional[Dict[str, Any]]:
        health_data = self._find()
        return health_data.risk_test_data if health_data else None

    def save_habits(
        self,
        sleep: Optional[float] = None,
        exercise: Optional[float] = None,
        water: Optional[float] = None,
        stress: Optional[float] = None,
        smoking: Optional[bool] = None,
    ) -> Dict[str, Any]:
        habits = {
            "sleep": sleep,
            "exercise": exercise,
            "water": water,
            "stress": stress,
            "smoking": bool(smoking),
            "timestamp": _timestamp(),
        }
        health_data = self._find_or_create()
        health_data.habits_data = habits
        self._save(health_data)
        return habits

    def get_habits(self) -> Optional[Dict[str, Any]]:
        health_data = self._find()
        return health_data.habits_data if health_data else None

    # ── summaries ─────────────────────────────────────────────────────

    def export_data(self) -> Dict[str, Any]:
        health_data = self._find()
        return {
            "recordings": list(health_data.cough_history or []) if health_data else [],
            "riskAssessment": health_data.risk_test_data if health_data else None,
            "habits": health_data.habits_data if health_data else None,
            "exportDate": _timestamp(),
            "user": {
                "id": str(self.user.id),
                "name": self.user.name,
                "email": self.user.email,
            },
        }

    def get_dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        health_data = self._find()
        if health_data is None:
            return {
                "totalRecordings": 0,
                "recordingsThisWeek": 0,
                "recentRecordings": [],
                "riskAssessment": None,
                "habits": None,
                "lastUpdated": None,
            }

        now = now or utcnow()
        history = list(health_data.cough_history or [])
        this_week = 0
        for rec in history:
            recorded_at = _parse_timestamp(rec.get("timestamp"))
            if recorded_at is not None and now - recorded_at < WEEK:
                this_week += 1

        last_updated = health_data.updated_at
        return {
            "totalRecordings": len(history),
            "recordingsThisWeek": this_week,
            "recentRecordings": history[:RECENT_RECORDINGS_LIMIT],
            "riskAssessment": health_data.risk_test_data,
            "habits": health_data.habits_data,
            "lastUpdated": last_updated.isoformat() if last_updated else None,
        }
