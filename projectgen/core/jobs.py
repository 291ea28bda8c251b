from __future__ import annotations
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

log = logging.getLogger(__name__)


@dataclass
class Job:
    project_id: str
    task: Optional[asyncio.Task] = None
    started: bool = False
    cancel_requested: bool = False
    started_at: datetime = field(default_factory=datetime.utcnow)


class JobRegistry:
    """
    At most one in-flight generation per project.

    The lock guards only the dict mutation; it is never held while
    awaiting anything.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: Dict[str, Job] = {}

    def try_start(self, project_id: str) -> bool:
        with self._lock:
            if project_id in self._jobs:
                return False
            self._jobs[project_id] = Job(project_id=project_id)
        log.info("Job admitted", extra={"project_id": project_id, "stage": "-"})
        return True

    def attach(self, project_id: str, task: asyncio.Task) -> None:
        with self._lock:
            job = self._jobs.get(project_id)
            if job is None:
                # The pipeline already finished and released the slot.
                return
            job.task = task

    def mark_started(self, project_id: str) -> bool:
        """Flag the job as running; returns True if it was cancelled before starting."""
        with self._lock:
            job = self._jobs.get(project_id)
            if job is None:
                return False
            job.started = True
            return job.cancel_requested

    def release(self, project_id: str, task: Optional[asyncio.Task] = None) -> None:
        """Free the slot; with ``task`` given, only if the slot still belongs to it."""
        with self._lock:
            job = self._jobs.get(project_id)
            if job is None or (task is not None and job.task is not None and job.task is not task):
                return
            del self._jobs[project_id]
        log.info("Job released", extra={"project_id": project_id, "stage": "-"})

    def is_running(self, project_id: str) -> bool:
        with self._lock:
            return project_id in self._jobs

    def get(self, project_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(project_id)

    def running(self) -> List[str]:
        with self._lock:
            return list(self._jobs)

    def cancel(self, project_id: str) -> bool:
        """Request cancellation; before the files are stored the pipeline records it as an Error."""
        with self._lock:
            job = self._jobs.get(project_id)
            if job is None or (job.task is not None and job.task.done()):
                return False
            job.cancel_requested = True
            task = job.task if job.started else None
        if task is not None:
            task.cancel()
        log.info("Cancellation requested", extra={"project_id": project_id, "stage": "-"})
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
