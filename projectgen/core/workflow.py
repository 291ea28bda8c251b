from __future__ import annotations
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class JobStage(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    PLANNING = "PLANNING"
    GENERATING_FILES = "GENERATING_FILES"
    FINALIZING = "FINALIZING"
    DEPLOYING = "DEPLOYING"
    READY = "READY"
    ERROR = "ERROR"

    @property
    def terminal(self) -> bool:
        return self in (JobStage.READY, JobStage.ERROR)


class ProjectStatus(str, Enum):
    GENERATING = "generating"
    READY = "ready"
    ERROR = "error"


# Entry percentage for each stage; GENERATING_FILES advances through sub-steps.
STAGE_PROGRESS: Dict[JobStage, int] = {
    JobStage.ANALYZING: 10,
    JobStage.PLANNING: 25,
    JobStage.GENERATING_FILES: 40,
    JobStage.FINALIZING: 95,
    JobStage.DEPLOYING: 97,
    JobStage.READY: 100,
}


@dataclass(frozen=True)
class ProgressEvent:
    percent: int
    stage: str
    message: str

    def __post_init__(self):
        if not 0 <= self.percent <= 100:
            raise ValueError(f"percent out of range: {self.percent}")


class EventType(str, Enum):
    STAGE_CHANGED = "stage_changed"
    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class GenerationEvent:
    """One event delivered to project subscribers."""
    type: EventType
    project_id: str
    percent: Optional[int] = None
    stage: Optional[str] = None
    message: Optional[str] = None
    subject: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    cause: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def progress(cls, project_id: str, event: ProgressEvent) -> "GenerationEvent":
        return cls(EventType.PROGRESS, project_id, percent=event.percent, stage=event.stage, message=event.message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"type": self.type.value, "subjectId": self.project_id}
        for key in ("percent", "stage", "message", "subject", "error", "cause"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def to_sse(self) -> str:
        """Format for Server-Sent Events"""
        return f"data: {self.to_json()}\n\n"
