"""Tests for the HTTP and WebSocket surface using FastAPI's TestClient."""
import asyncio
import threading
import time
import pytest
from fastapi.testclient import TestClient
from projectgen.db.gateway import InMemoryGateway
from projectgen.main import create_app
from projectgen.providers.registry import ProviderSelector
from projectgen.tasks.jobs import GenerationService
from tests.fakes import HELLO_PROMPT, FakeProvider


class HeldProvider(FakeProvider):
    """Blocks in analyze until the test thread releases it."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.release = threading.Event()

    async def analyze(self, description):
        self.calls.append("analyze")
        while not self.release.is_set():
            await asyncio.sleep(0.01)
        return self.analysis


def make_client(provider):
    service = GenerationService(InMemoryGateway(), selector_factory=lambda: ProviderSelector([provider]))
    return TestClient(create_app(service=service))


def wait_for_status(client, project_id, status, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        project = client.get(f"/v1/projects/{project_id}").json()
        if project["status"] == status:
            return project
        time.sleep(0.02)
    raise AssertionError(f"project never reached {status}")


def create_project(client, name="hello-world"):
    r = client.post("/v1/projects", json={"name": name, "description": "demo"})
    assert r.status_code == 200
    return r.json()


def test_health():
    with make_client(FakeProvider()) as client:
        assert client.get("/v1/health").json() == {"status": "ok"}


def test_status_reports_providers():
    with make_client(FakeProvider(name="azure")) as client:
        body = client.get("/v1/status").json()

    assert body == {
        "aiProviders": {"configured": {"azure": True}, "active": "azure"},
        "previewDeploy": False,
        "runningJobs": 0,
    }


def test_create_and_fetch_project():
    with make_client(FakeProvider()) as client:
        project = create_project(client)

        assert project["status"] == "generating"
        assert project["files"] == []
        assert "createdAt" in project
        assert client.get(f"/v1/projects/{project['id']}").json()["name"] == "hello-world"
        assert [p["id"] for p in client.get("/v1/projects").json()] == [project["id"]]


def test_unknown_project_is_404():
    with make_client(FakeProvider()) as client:
        assert client.get("/v1/projects/missing").status_code == 404
        assert client.post("/v1/projects/missing/generate", json={"prompt": "x"}).status_code == 404
        assert client.get("/v1/projects/missing/messages").status_code == 404


def test_generate_runs_to_ready():
    with make_client(FakeProvider()) as client:
        project = create_project(client)

        r = client.post(f"/v1/projects/{project['id']}/generate", json={"prompt": HELLO_PROMPT})
        assert r.status_code == 202
        assert r.json() == {"accepted": True, "projectId": project["id"]}

        done = wait_for_status(client, project["id"], "ready")
        assert [f["path"] for f in done["files"]] == ["package.json", "app/page.tsx", "README.md"]
        assert done["files"][0]["type"] == "file"

        messages = client.get(f"/v1/projects/{project['id']}/messages").json()
        assert messages[0]["role"] == "user"
        assert messages[0]["content"] == HELLO_PROMPT
        assert messages[-1]["metadata"]["generationStep"] == "complete"


def test_blank_prompt_is_rejected():
    with make_client(FakeProvider()) as client:
        project = create_project(client)

        r = client.post(f"/v1/projects/{project['id']}/generate", json={"prompt": "   "})

        assert r.status_code == 422


def test_second_generate_while_running_is_409():
    provider = HeldProvider()
    with make_client(provider) as client:
        project = create_project(client)
        url = f"/v1/projects/{project['id']}/generate"

        assert client.post(url, json={"prompt": HELLO_PROMPT}).status_code == 202
        r = client.post(url, json={"prompt": "Another prompt"})
        assert r.status_code == 409
        assert r.json()["detail"] == "A generation is already running for this project"

        provider.release.set()
        wait_for_status(client, project["id"], "ready")


def test_cancel_running_generation():
    provider = HeldProvider()
    with make_client(provider) as client:
        project = create_project(client)
        client.post(f"/v1/projects/{project['id']}/generate", json={"prompt": HELLO_PROMPT})

        deadline = time.monotonic() + 5
        while "analyze" not in provider.calls and time.monotonic() < deadline:
            time.sleep(0.01)
        r = client.post(f"/v1/projects/{project['id']}/cancel")

        assert r.json() == {"projectId": project["id"], "cancelled": True}
        wait_for_status(client, project["id"], "error")
        messages = client.get(f"/v1/projects/{project['id']}/messages").json()
        assert messages[-1]["metadata"]["cause"] == "GenerationCancelled"


def test_user_message_starts_generation():
    with make_client(FakeProvider()) as client:
        project = create_project(client)

        r = client.post(f"/v1/projects/{project['id']}/messages", json={"content": HELLO_PROMPT})

        assert r.status_code == 200
        assert r.json()["role"] == "user"
        wait_for_status(client, project["id"], "ready")


def test_assistant_message_does_not_start_generation():
    provider = FakeProvider()
    with make_client(provider) as client:
        project = create_project(client)

        client.post(f"/v1/projects/{project['id']}/messages", json={"role": "assistant", "content": "note"})

        assert client.get("/v1/status").json()["runningJobs"] == 0
    assert provider.calls == []


def test_websocket_receives_progress_after_join():
    with make_client(FakeProvider()) as client:
        project = create_project(client)

        with client.websocket_connect("/v1/ws") as ws:
            ws.send_text("not json")
            ws.send_json({"type": "join_project", "projectId": project["id"]})
            assert ws.receive_json() == {"type": "joined", "subjectId": project["id"]}

            client.post(f"/v1/projects/{project['id']}/generate", json={"prompt": HELLO_PROMPT})

            events = []
            while True:
                event = ws.receive_json()
                events.append(event)
                if event["type"] in ("completed", "failed"):
                    break

    percents = [e["percent"] for e in events if e["type"] == "progress"]
    assert percents == sorted(percents)
    assert percents[-1] == 100
    assert events[-1]["type"] == "completed"
    assert events[-1]["subject"]["status"] == "ready"
    assert all(e["subjectId"] == project["id"] for e in events)
