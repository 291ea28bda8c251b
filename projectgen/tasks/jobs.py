from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional
from projectgen.core.broadcast import BroadcastHub
from projectgen.core.engine import GenerationPipeline
from projectgen.core.errors import DuplicateJobError
from projectgen.core.jobs import JobRegistry
from projectgen.core.sandbox import PreviewDeployer
from projectgen.db.gateway import PersistenceGateway
from projectgen.providers.registry import ProviderSelector

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitResult:
    accepted: bool
    project_id: str
    reason: Optional[str] = None
    task: Optional[asyncio.Task] = None


class GenerationService:
    """
    Process-wide entry point for generation requests.

    Owns the job registry and broadcast hub; each admitted request runs
    as its own asyncio task and reports through the hub.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        selector_factory: Callable[[], ProviderSelector] = ProviderSelector.default,
        deployer: Optional[PreviewDeployer] = None,
        registry: Optional[JobRegistry] = None,
        hub: Optional[BroadcastHub] = None,
    ):
        self.gateway = gateway
        self.selector_factory = selector_factory
        self.deployer = deployer
        self.registry = registry or JobRegistry()
        self.hub = hub or BroadcastHub()

    def submit_generation(self, project_id: str, prompt: str, record_prompt: bool = False) -> SubmitResult:
        """Admit and start a job without waiting for it; must be called on the running loop."""
        if not self.registry.try_start(project_id):
            log.info("Generation rejected, job already running", extra={"project_id": project_id, "stage": "-"})
            return SubmitResult(
                accepted=False,
                project_id=project_id,
                reason=DuplicateJobError(project_id).message,
            )

        try:
            pipeline = GenerationPipeline(
                project_id=project_id,
                gateway=self.gateway,
                hub=self.hub,
                selector=self.selector_factory(),
                registry=self.registry,
                deployer=self.deployer,
            )
            task = asyncio.create_task(pipeline.run(prompt, record_prompt=record_prompt), name=f"generate-{project_id}")
        except Exception:
            self.registry.release(project_id)
            raise
        self.registry.attach(project_id, task)
        return SubmitResult(accepted=True, project_id=project_id, task=task)

    def cancel(self, project_id: str) -> bool:
        return self.registry.cancel(project_id)

    async def shutdown(self) -> None:
        tasks = []
        for project_id in self.registry.running():
            job = self.registry.get(project_id)
            if job and job.task:
                tasks.append(job.task)
            self.registry.cancel(project_id)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.hub.close_all()
