"""
Durable store for projects and their chat log.

The pipeline only talks to ``PersistenceGateway``; the in-memory and
SQLAlchemy implementations are selected by ``STORAGE_BACKEND``.
"""
from __future__ import annotations
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from projectgen.core.errors import PersistenceError, ProjectNotFound
from projectgen.core.workflow import ProjectStatus
from projectgen.db.models import MessageRecord, ProjectRecord
from projectgen.schemas.projects import ChatMessage, FileArtifact, Project

log = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"status", "files", "preview_url", "name", "description"}


def _check_fields(fields: Dict[str, Any]) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update project fields: {sorted(unknown)}")


def _files_to_json(files: List[FileArtifact]) -> List[dict]:
    return [FileArtifact.model_validate(f).model_dump(mode="json", by_alias=True) for f in files]


class PersistenceGateway:
    async def create_project(self, name: str, description: Optional[str] = None) -> Project:
        raise NotImplementedError

    async def get_project(self, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    async def list_projects(self) -> List[Project]:
        raise NotImplementedError

    async def update_project(self, project_id: str, **fields: Any) -> Project:
        """Apply ``fields`` atomically; ``files`` replaces the whole list."""
        raise NotImplementedError

    async def append_message(
        self, project_id: str, role: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> ChatMessage:
        raise NotImplementedError

    async def list_messages(self, project_id: str) -> List[ChatMessage]:
        raise NotImplementedError


class InMemoryGateway(PersistenceGateway):
    """Volatile store; returned models are copies."""

    def __init__(self):
        self._projects: Dict[str, Project] = {}
        self._messages: List[ChatMessage] = []

    async def create_project(self, name: str, description: Optional[str] = None) -> Project:
        now = datetime.utcnow()
        project = Project(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            status=ProjectStatus.GENERATING,
            files=[],
            preview_url=None,
            created_at=now,
            updated_at=now,
        )
        self._projects[project.id] = project
        return project.model_copy(deep=True)

    async def get_project(self, project_id: str) -> Optional[Project]:
        project = self._projects.get(project_id)
        return project.model_copy(deep=True) if project else None

    async def list_projects(self) -> List[Project]:
        return [p.model_copy(deep=True) for p in self._projects.values()]

    async def update_project(self, project_id: str, **fields: Any) -> Project:
        _check_fields(fields)
        project = self._projects.get(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        updates = dict(fields)
        if "files" in updates:
            updates["files"] = [FileArtifact.model_validate(f) for f in _files_to_json(updates["files"])]
        if "status" in updates:
            updates["status"] = ProjectStatus(updates["status"])
        updates["updated_at"] = datetime.utcnow()
        updated = project.model_copy(update=updates, deep=True)
        self._projects[project_id] = updated
        return updated.model_copy(deep=True)

    async def append_message(
        self, project_id: str, role: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> ChatMessage:
        if project_id not in self._projects:
            raise ProjectNotFound(project_id)
        message = ChatMessage(
            id=str(uuid.uuid4()),
            project_id=project_id,
            role=role,
            content=content,
            metadata=dict(metadata or {}),
            created_at=datetime.utcnow(),
        )
        self._messages.append(message)
        return message.model_copy(deep=True)

    async def list_messages(self, project_id: str) -> List[ChatMessage]:
        return [m.model_copy(deep=True) for m in self._messages if m.project_id == project_id]


class SqlGateway(PersistenceGateway):
    """SQLAlchemy-backed store; blocking session work runs in a worker thread."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        if session_factory is None:
            from projectgen.db.session import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    async def _run(self, fn: Callable[[Session], Any]) -> Any:
        def work():
            db = self.session_factory()
            try:
                return fn(db)
            except SQLAlchemyError:
                db.rollback()
                raise
            finally:
                db.close()

        try:
            return await asyncio.to_thread(work)
        except SQLAlchemyError as e:
            log.error("Database operation failed: %s", e)
            raise PersistenceError(f"Database operation failed: {e}") from e

    @staticmethod
    def _to_project(record: ProjectRecord) -> Project:
        return Project(
            id=record.id,
            name=record.name,
            description=record.description,
            status=ProjectStatus(record.status),
            files=[FileArtifact.model_validate(f) for f in (record.files or [])],
            preview_url=record.preview_url,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @staticmethod
    def _to_message(record: MessageRecord) -> ChatMessage:
        return ChatMessage(
            id=record.id,
            project_id=record.project_id,
            role=record.role,
            content=record.content,
            metadata=record.metadata_ or {},
            created_at=record.created_at,
        )

    async def create_project(self, name: str, description: Optional[str] = None) -> Project:
        def op(db: Session) -> Project:
            record = ProjectRecord(name=name, description=description, status=ProjectStatus.GENERATING.value, files=[])
            db.add(record)
            db.commit()
            db.refresh(record)
            return self._to_project(record)
        return await self._run(op)

    async def get_project(self, project_id: str) -> Optional[Project]:
        def op(db: Session) -> Optional[Project]:
            record = db.get(ProjectRecord, project_id)
            return self._to_project(record) if record else None
        return await self._run(op)

    async def list_projects(self) -> List[Project]:
        def op(db: Session) -> List[Project]:
            records = db.scalars(select(ProjectRecord).order_by(ProjectRecord.created_at)).all()
            return [self._to_project(r) for r in records]
        return await self._run(op)

    async def update_project(self, project_id: str, **fields: Any) -> Project:
        _check_fields(fields)

        def op(db: Session) -> Project:
            record = db.get(ProjectRecord, project_id)
            if record is None:
                raise ProjectNotFound(project_id)
            for key, value in fields.items():
                if key == "files":
                    value = _files_to_json(value)
                elif key == "status":
                    value = ProjectStatus(value).value
                setattr(record, key, value)
            record.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(record)
            return self._to_project(record)
        return await self._run(op)

    async def append_message(
        self, project_id: str, role: str, content: str, metadata: Optional[Dict[str, Any]] = None
    ) -> ChatMessage:
        def op(db: Session) -> ChatMessage:
            if db.get(ProjectRecord, project_id) is None:
                raise ProjectNotFound(project_id)
            record = MessageRecord(project_id=project_id, role=role, content=content, metadata_=dict(metadata or {}))
            db.add(record)
            db.commit()
            db.refresh(record)
            return self._to_message(record)
        return await self._run(op)

    async def list_messages(self, project_id: str) -> List[ChatMessage]:
        def op(db: Session) -> List[ChatMessage]:
            records = db.scalars(
                select(MessageRecord)
                .where(MessageRecord.project_id == project_id)
                .order_by(MessageRecord.created_at)
            ).all()
            return [self._to_message(r) for r in records]
        return await self._run(op)


def build_gateway(backend: str) -> PersistenceGateway:
    if backend == "memory":
        return InMemoryGateway()
    if backend == "sql":
        return SqlGateway()
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")
