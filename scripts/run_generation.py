#!/usr/bin/env python3
"""
Script to run one project generation in process and print its events.
Usage: python scripts/run_generation.py "Create a simple Hello World page"
"""
import sys
import asyncio
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from projectgen.core.logging import configure_logging
from projectgen.core.sandbox import build_deployer
from projectgen.core.workflow import EventType
from projectgen.db.gateway import build_gateway
from projectgen.core.config import settings
from projectgen.tasks.jobs import GenerationService


async def run_generation(prompt: str) -> int:
    """Create a project, generate it and stream the events to stdout."""
    service = GenerationService(gateway=build_gateway(settings.storage_backend), deployer=build_deployer())
    project = await service.gateway.create_project(name="cli-project", description=prompt)
    print(f"Created project: {project.id}")
    print()

    subscription = service.hub.subscribe(project.id)
    result = service.submit_generation(project.id, prompt, record_prompt=True)
    if not result.accepted:
        print(f"Rejected: {result.reason}")
        return 1

    print("=" * 80)
    print("Starting generation...")
    print("=" * 80)
    exit_code = 0
    async for event in subscription:
        if event.type == EventType.PROGRESS:
            print(f"[{event.percent:3d}%] {event.stage}: {event.message}")
        elif event.type == EventType.COMPLETED:
            files = event.subject["files"]
            print()
            print(f"Generation completed with {len(files)} files:")
            for f in files:
                print(f"  {f['path']}")
            if event.subject.get("previewUrl"):
                print(f"Preview: {event.subject['previewUrl']}")
            break
        elif event.type == EventType.FAILED:
            print()
            print(f"ERROR ({event.cause}): {event.error}")
            exit_code = 1
            break

    service.hub.unsubscribe(subscription)
    await result.task
    return exit_code


if __name__ == "__main__":
    configure_logging()
    prompt = " ".join(sys.argv[1:]) or "Create a simple Hello World page"
    sys.exit(asyncio.run(run_generation(prompt)))
