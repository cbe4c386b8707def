"""Health data routes (cough recordings, risk assessment, habits)."""
import math
import uuid
from datetime import datetime
from typing import Any, List, Optional, Union
from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from app.db.sessions import get_db
from app.models.user import User
from app.core.errors import InvalidInputError
from app.core.security import get_current_user
from app.routes._shared import body_or_empty
from app.services.health_service import HealthService


router = APIRouter(prefix="/api/health", tags=["Health Data"])

Number = Union[int, float]


def _number(value: Any, message: str) -> Optional[Number]:
    """Accept ints, floats and numeric strings; reject everything else."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(message)
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            raise ValueError(message)
        if not math.isfinite(parsed):
            raise ValueError(message)
        return parsed
    raise ValueError(message)


# Request schemas
class RecordingRequest(BaseModel):
    duration: Optional[Number] = Field(default=None, validate_default=True)
    timestamp: Optional[datetime] = None
    date: Optional[str] = None
    time: Optional[str] = None
    intensity: Optional[str] = None
    intensityScore: Optional[Number] = None
    pattern: Optional[str] = None
    patternConfidence: Optional[Number] = None
    phases: Optional[str] = None
    phaseDescription: Optional[str] = None
    quality: Optional[str] = None
    qualityDescription: Optional[str] = None
    frequency: Optional[Number] = None
    peakAmplitude: Optional[Number] = None
    averageAmplitude: Optional[Number] = None
    dynamicRange: Optional[Number] = None
    energyLevel: Optional[str] = None
    efficiency: Optional[str] = None
    observation: Optional[str] = None
    observationType: Optional[str] = None
    recommendations: Optional[List[str]] = None
    type: Optional[str] = None

    @field_validator("duration", mode="before")
    @classmethod
    def check_duration(cls, v):
        if v is None or v == "":
            raise ValueError("Duration is required")
        return _number(v, "Duration must be a number")

    @field_validator("timestamp", mode="before")
    @classmethod
    def check_timestamp(cls, v):
        # Epoch numbers (seconds or milliseconds) or ISO-8601 strings
        if isinstance(v, bool):
            raise ValueError("Timestamp must be a number")
        if isinstance(v, str):
            try:
                return _number(v, "Timestamp must be a number")
            except ValueError:
                return v
        return v


class RiskAssessmentRequest(BaseModel):
    riskLevel: Optional[str] = Field(default=None, validate_default=True)
    percentage: Optional[Number] = Field(default=None, validate_default=True)
    score: Optional[Number] = None
    questions: Any = None
    answers: Any = None

    @field_validator("riskLevel")
    @classmethod
    def check_risk_level(cls, v):
        if v is None or not v.strip():
            raise ValueError("Risk level is required")
        return v.strip()

    @field_validator("percentage", mode="before")
    @classmethod
    def check_percentage(cls, v):
        if v is None or v == "":
            raise ValueError("Percentage is required")
        value = _number(v, "Percentage must be a number")
        if not 0 <= value <= 100:
            raise ValueError("Percentage must be between 0 and 100")
        return value


class HabitsRequest(BaseModel):
    sleep: Optional[Number] = None
    exercise: Optional[Number] = None
    water: Optional[Number] = None
    stress: Optional[Number] = None
    smoking: Optional[bool] = None

    @field_validator("sleep", mode="before")
    @classmethod
    def check_sleep(cls, v):
        return _number(v, "Sleep hours must be a number")

    @field_validator("exercise", mode="before")
    @classmethod
    def check_exercise(cls, v):
        return _number(v, "Exercise minutes must be a number")

    @field_validator("water", mode="before")
    @classmethod
    def check_water(cls, v):
        return _number(v, "Water intake must be a number")

    @field_validator("stress", mode="before")
    @classmethod
    def check_stress(cls, v):
        return _number(v, "Stress level must be a number")

    @field_validator("smoking", mode="before")
    @classmethod
    def check_smoking(cls, v):
        if v is None or isinstance(v, bool):
            return v
        if v in (0, 1) and not isinstance(v, float):
            return bool(v)
        if isinstance(v, str) and v.strip().lower() in ("true", "false", "0", "1"):
            return v.strip().lower() in ("true", "1")
        raise ValueError("Smoking status must be boolean")


def get_health_service(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> HealthService:
    return HealthService(db, current_user)


@router.get("/dashboard")
def get_dashboard(service: HealthService = Depends(get_health_service)):
    """Summary of all health data for the current user."""
    return {"success": True, "dashboard": service.get_dashboard()}


@router.post("/recording", status_code=status.HTTP_201_CREATED)
def add_recording(
    request: Optional[RecordingRequest] = Body(default=None),
    service: HealthService = Depends(get_health_service)
):
    request = body_or_empty(request, RecordingRequest)
    recording = service.add_recording(request.model_dump(exclude_none=True))
    return {"success": True, "message": "Recording added successfully", "recording": recording}


@router.get("/recordings")
def get_recordings(service: HealthService = Depends(get_health_service)):
    recordings = service.list_recordings()
    return {"success": True, "recordings": recordings, "count": len(recordings)}


@router.delete("/recording/{recording_id}")
def delete_recording(recording_id: str, service: HealthService = Depends(get_health_service)):
    try:
        uuid.UUID(recording_id)
    except ValueError:
        raise InvalidInputError("Invalid recording ID")
    service.delete_recording(recording_id)
    return {"success": True, "message": "Recording deleted successfully"}


@router.post("/risk-assessment")
def save_risk_assessment(
    request: Optional[RiskAssessmentRequest] = Body(default=None),
    service: HealthService = Depends(get_health_service)
):
    request = body_or_empty(request, RiskAssessmentRequest)
    risk_data = service.save_risk_assessment(
        request.riskLevel,
        request.percentage,
        score=request.score,
        questions=request.questions,
        answers=request.answers,
    )
    return {"success": True, "message": "Risk assessment saved successfully", "riskData": risk_data}


@router.get("/risk-assessment")
def get_risk_assessment(service: HealthService = Depends(get_health_service)):
    return {"success": True, "riskAssessment": service.get_risk_assessment()}


@router.post("/habits")
def save_habits(
    request: Optional[HabitsRequest] = Body(default=None),
    service: HealthService = Depends(get_health_service)
):
    request = body_or_empty(request, HabitsRequest)
    habits = service.save_habits(**request.model_dump())
    return {"success": True, "message": "Habits saved successfully", "habits": habits}


@router.get("/habits")
def get_habits(service: HealthService = Depends(get_health_service)):
    return {"success": True, "habits": service.get_habits()}


@router.get("/export")
def export_data(service: HealthService = Depends(get_health_service)):
    """Everything stored for the current user in one bundle."""
    return {"success": True, "data": service.export_data()}
