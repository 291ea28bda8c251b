from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional
import httpx
from projectgen.core.config import settings
from projectgen.schemas.projects import FileArtifact, FileKind

log = logging.getLogger(__name__)


@dataclass
class SandboxClient:
    token: str
    api_base: str = settings.e2b_api_base
    template: str = "nodejs-react"
    transport: Optional[httpx.AsyncBaseTransport] = None

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.api_base, timeout=60, transport=self.transport)

    async def create_session(self) -> str:
        async with self._client() as client:
            r = await client.post("/sessions", headers=self._headers(), json={"template": self.template})
            r.raise_for_status()
            data = r.json()
        if not isinstance(data, dict) or not isinstance(data.get("id"), str) or not data["id"]:
            raise ValueError(f"Sandbox session response has no id: {data!r}")
        return data["id"]

    async def upload_file(self, session_id: str, path: str, content: str) -> None:
        async with self._client() as client:
            r = await client.post(
                f"/sessions/{session_id}/filesystem/write",
                headers=self._headers(),
                json={"path": path, "content": content},
            )
            r.raise_for_status()

    async def execute(self, session_id: str, command: str, background: bool = False) -> dict:
        async with self._client() as client:
            r = await client.post(
                f"/sessions/{session_id}/processes",
                headers=self._headers(),
                json={"command": command, "background": background},
            )
            r.raise_for_status()
            return r.json()

    def preview_url(self, session_id: str) -> str:
        return f"https://{session_id}.e2b.dev"


@dataclass(frozen=True)
class DeployOutcome:
    ok: bool
    preview_url: Optional[str] = None
    error: Optional[str] = None

    def to_metadata(self) -> dict:
        if self.ok:
            return {"ok": True, "previewUrl": self.preview_url}
        return {"ok": False, "error": self.error}


class PreviewDeployer:
    """Turns a generated file set into a running preview. Never raises."""

    def __init__(self, client: SandboxClient, startup_wait: float = 3.0):
        self.client = client
        self.startup_wait = startup_wait

    async def deploy(self, project_id: str, files: List[FileArtifact]) -> DeployOutcome:
        extra = {"project_id": project_id, "stage": "DEPLOYING"}
        try:
            session_id = await self.client.create_session()
            for file in files:
                if file.kind == FileKind.FILE:
                    await self.client.upload_file(session_id, file.path, file.content)

            has_manifest = any(f.path == "package.json" for f in files)
            if has_manifest:
                await self.client.execute(session_id, "npm install")
            start = "npm run dev" if has_manifest else "npx serve -s . -p 3000"
            await self.client.execute(session_id, start, background=True)
            if self.startup_wait:
                await asyncio.sleep(self.startup_wait)

            url = self.client.preview_url(session_id)
            log.info("Preview deployed at %s", url, extra=extra)
            return DeployOutcome(ok=True, preview_url=url)
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            log.warning("Preview deploy failed: %s", e, extra=extra)
            return DeployOutcome(ok=False, error=f"Failed to deploy project: {e}")


def build_deployer() -> Optional[PreviewDeployer]:
    if not (settings.deploy_enabled and settings.e2b_api_key):
        return None
    return PreviewDeployer(SandboxClient(token=settings.e2b_api_key))
