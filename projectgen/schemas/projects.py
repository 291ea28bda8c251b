from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Literal, Optional, Dict, Any, List
from datetime import datetime
from enum import Enum
from projectgen.core.workflow import ProjectStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class FileArtifact(CamelModel):
    path: str
    content: str
    kind: FileKind = Field(default=FileKind.FILE, alias="type")
    language: Optional[str] = None


class Project(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    status: ProjectStatus = ProjectStatus.GENERATING
    files: List[FileArtifact] = []
    preview_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    def snapshot(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ChatMessage(CamelModel):
    id: str
    project_id: str
    role: Literal["user", "assistant"]
    content: str
    metadata: Dict[str, Any] = {}
    created_at: datetime


class ProjectCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, examples=["hello-world"])
    description: Optional[str] = None


class MessageCreateRequest(CamelModel):
    role: Literal["user", "assistant"] = "user"
    content: str = Field(..., min_length=1)
    metadata: Dict[str, Any] = {}


class GenerateRequest(CamelModel):
    prompt: str = Field(..., examples=["Create a simple Hello World page"])

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Prompt is required")
        return value


class GenerateAccepted(CamelModel):
    accepted: bool
    project_id: str


class CancelResponse(CamelModel):
    project_id: str
    cancelled: bool


class ProviderStatus(CamelModel):
    configured: Dict[str, bool]
    active: str


class ServiceStatus(CamelModel):
    ai_providers: ProviderStatus
    preview_deploy: bool
    running_jobs: int
