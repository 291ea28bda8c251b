from __future__ import annotations
import asyncio
import logging
from typing import List, Optional, Tuple
from projectgen.core.broadcast import BroadcastHub
from projectgen.core.errors import GenerationCancelled, PersistenceError, ResponseParseError
from projectgen.core.jobs import JobRegistry
from projectgen.core.sandbox import DeployOutcome, PreviewDeployer
from projectgen.core.workflow import (
    STAGE_PROGRESS,
    EventType,
    GenerationEvent,
    JobStage,
    ProgressEvent,
    ProjectStatus,
)
from projectgen.db.gateway import PersistenceGateway
from projectgen.generators.project_gen.parser import parse_generated_files
from projectgen.generators.project_gen.types import ParseOutcome
from projectgen.providers.base import AnalysisResult, ProviderAdapter
from projectgen.providers.registry import ProviderSelector
from projectgen.schemas.projects import FileArtifact, Project

log = logging.getLogger(__name__)

ERROR_REPLY = "Sorry, there was an error generating your project. Please try again."

# Cosmetic checkpoints inside GENERATING_FILES.
FILE_SUBSTEPS = [
    (40, "Generating components", "Creating React components and pages..."),
    (60, "Applying styles", "Implementing responsive design and modern UI components..."),
    (80, "Adding functionality", "Implementing interactive features and business logic..."),
]


class GenerationPipeline:
    """
    Drives one generation job for one project:

    ANALYZING(10) -> PLANNING(25) -> GENERATING_FILES(40..80)
    -> FINALIZING(95) [-> DEPLOYING(97)] -> READY(100)

    ERROR is reachable from every stage up to and including the FINALIZING
    write. After that the files and READY status are durable, so deploy
    problems and late cancellation only lose the preview. One adapter is
    used for the whole job; provider fallback only happens when it is selected.
    """

    def __init__(
        self,
        project_id: str,
        gateway: PersistenceGateway,
        hub: BroadcastHub,
        selector: ProviderSelector,
        registry: Optional[JobRegistry] = None,
        deployer: Optional[PreviewDeployer] = None,
    ):
        self.project_id = project_id
        self.gateway = gateway
        self.hub = hub
        self.selector = selector
        self.registry = registry
        self.deployer = deployer
        self.stage = JobStage.IDLE
        self.adapter: Optional[ProviderAdapter] = None
        self.used_fallback = False
        self._last_percent = 0

    def _log_extra(self) -> dict:
        return {"project_id": self.project_id, "stage": self.stage.value}

    def _publish(self, event: GenerationEvent) -> None:
        self.hub.publish(self.project_id, event)

    def _progress(self, percent: int, label: str, message: str) -> None:
        if percent < self._last_percent:
            raise ValueError(f"progress went backwards: {self._last_percent} -> {percent}")
        self._last_percent = percent
        self._publish(GenerationEvent.progress(self.project_id, ProgressEvent(percent, label, message)))

    def _set_stage(self, stage: JobStage, label: Optional[str] = None, message: Optional[str] = None) -> None:
        self.stage = stage
        log.info("Entering stage", extra=self._log_extra())
        self._publish(GenerationEvent(EventType.STAGE_CHANGED, self.project_id, stage=stage.value))
        if label is not None:
            self._progress(STAGE_PROGRESS[stage], label, message or label)

    async def run(self, prompt: str, record_prompt: bool = False) -> JobStage:
        """Run the job to a terminal stage. Never raises; the registry slot is always released."""
        try:
            try:
                analysis, outcome, project = await self._run(prompt, record_prompt)
            except asyncio.CancelledError:
                await self._fail(GenerationCancelled())
            except Exception as e:
                await self._fail(e)
            else:
                await self._finish(analysis, outcome, project)
        finally:
            if self.registry is not None:
                self.registry.release(self.project_id, asyncio.current_task())
        return self.stage

    async def _run(self, prompt: str, record_prompt: bool) -> Tuple[AnalysisResult, ParseOutcome, Project]:
        """Everything up to the terminal files write; any failure here leaves files untouched."""
        if self.registry is not None and self.registry.mark_started(self.project_id):
            raise GenerationCancelled()
        if record_prompt:
            await self.gateway.append_message(self.project_id, "user", prompt)
        await self.gateway.update_project(self.project_id, status=ProjectStatus.GENERATING)
        await self.gateway.append_message(
            self.project_id,
            "assistant",
            "Starting project generation...",
            {"generationStep": "analyzing", "progress": 0},
        )

        self.adapter = self.selector.select_initial()
        log.info("Using provider %s", self.adapter.name, extra=self._log_extra())

        self._set_stage(
            JobStage.ANALYZING,
            "Analyzing requirements",
            "Understanding your project requirements and extracting key features...",
        )
        analysis = await self._analyze(prompt)

        self._set_stage(
            JobStage.PLANNING,
            "Planning architecture",
            "Creating project structure and component hierarchy...",
        )
        raw = await self._generate_raw(analysis)

        self._set_stage(JobStage.GENERATING_FILES)
        outcome = parse_generated_files(raw, analysis.suggested_name)
        self.used_fallback = outcome.used_fallback
        if outcome.used_fallback:
            log.warning("Provider output unusable, using fallback project: %s", outcome.reason,
                        extra=self._log_extra())
        for percent, label, message in FILE_SUBSTEPS:
            self._progress(percent, label, message)

        self._set_stage(
            JobStage.FINALIZING,
            "Optimizing",
            "Finalizing code structure and adding documentation...",
        )
        project = await self.gateway.update_project(
            self.project_id, files=outcome.files, status=ProjectStatus.READY
        )
        return analysis, outcome, project

    async def _finish(self, analysis: AnalysisResult, outcome: ParseOutcome, project: Project) -> None:
        """Post-READY work. Files and READY status are durable, so nothing here fails the job."""
        deploy = None
        if self.deployer is not None:
            deploy, project = await self._deploy(outcome.files, project)

        metadata = {
            "generationStep": "complete",
            "progress": 100,
            "files": [f.model_dump(mode="json", by_alias=True) for f in outcome.files],
            "provider": self.adapter.name,
            "fallback": outcome.used_fallback,
        }
        if deploy is not None:
            metadata["deploy"] = deploy.to_metadata()
        try:
            await self.gateway.append_message(
                self.project_id,
                "assistant",
                f'Project "{analysis.suggested_name}" has been generated successfully! '
                f"The project includes {len(outcome.files)} files and is ready for preview and download.",
                metadata,
            )
        except asyncio.CancelledError:
            log.warning("Cancelled while recording completion message", extra=self._log_extra())
        except Exception:
            log.exception("Failed to record completion message", extra=self._log_extra())

        self._set_stage(JobStage.READY, "Complete", "Project generation completed successfully!")
        self._publish(GenerationEvent(
            EventType.COMPLETED,
            self.project_id,
            percent=100,
            stage=JobStage.READY.value,
            subject=project.snapshot(),
        ))
        log.info("Generation completed with %d files", len(outcome.files), extra=self._log_extra())

    async def _analyze(self, prompt: str) -> AnalysisResult:
        try:
            return await self.adapter.analyze(prompt)
        except ResponseParseError as e:
            log.warning("Analysis response unusable, continuing with defaults: %s", e.message,
                        extra=self._log_extra())
            return AnalysisResult.default()

    async def _generate_raw(self, analysis: AnalysisResult) -> str:
        try:
            return await self.adapter.generate_files(analysis)
        except ResponseParseError as e:
            log.warning("File response unusable: %s", e.message, extra=self._log_extra())
            return ""

    async def _deploy(self, files: List[FileArtifact], project: Project) -> Tuple[DeployOutcome, Project]:
        self._set_stage(JobStage.DEPLOYING, "Deploying", "Deploying to live environment...")
        try:
            outcome = await self.deployer.deploy(self.project_id, files)
            if outcome.ok:
                project = await self.gateway.update_project(self.project_id, preview_url=outcome.preview_url)
        except asyncio.CancelledError:
            log.warning("Deploy cancelled, project stays ready without preview", extra=self._log_extra())
            outcome = DeployOutcome(ok=False, error="Deploy was cancelled")
        except PersistenceError as e:
            log.error("Failed to store preview URL: %s", e.message, extra=self._log_extra())
            outcome = DeployOutcome(ok=False, error=f"Failed to store preview URL: {e.message}")
        except Exception as e:
            log.exception("Deploy failed", extra=self._log_extra())
            outcome = DeployOutcome(ok=False, error=f"Failed to deploy project: {e}")

        if outcome.ok:
            self._progress(STAGE_PROGRESS[JobStage.DEPLOYING], "Deploying", "Live preview ready!")
        else:
            self._progress(STAGE_PROGRESS[JobStage.DEPLOYING], "Deploying",
                           f"Live preview unavailable: {outcome.error}")
        return outcome, project

    async def _fail(self, error: Exception) -> None:
        failed_stage = self.stage
        cause = getattr(error, "cause", type(error).__name__)
        message = str(error) or cause
        self.stage = JobStage.ERROR
        extra = {"project_id": self.project_id, "stage": failed_stage.value}
        if isinstance(error, GenerationCancelled):
            log.warning("Generation cancelled", extra=extra)
        else:
            log.error("Generation failed: %s", message, exc_info=error, extra=extra)

        try:
            await self.gateway.update_project(self.project_id, status=ProjectStatus.ERROR)
        except Exception:
            log.exception("Failed to record error status", extra=extra)
        try:
            await self.gateway.append_message(
                self.project_id,
                "assistant",
                ERROR_REPLY,
                {"error": message, "cause": cause, "generationStep": failed_stage.value.lower()},
            )
        except Exception:
            log.exception("Failed to record error message", extra=extra)

        self._publish(GenerationEvent(
            EventType.FAILED,
            self.project_id,
            stage=failed_stage.value,
            error=message,
            cause=cause,
        ))
