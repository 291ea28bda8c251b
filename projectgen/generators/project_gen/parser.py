"""Decode and validate provider output into a project file set."""
import logging
from typing import Any, List, Optional
from pydantic import ValidationError
from projectgen.core.errors import FileSetValidationError, ResponseParseError
from projectgen.providers.base import DEFAULT_PROJECT_NAME, decode_json_payload
from projectgen.schemas.projects import FileArtifact
from projectgen.generators.project_gen.fallback import generate_fallback_project
from projectgen.generators.project_gen.types import ParseOutcome
from projectgen.generators.project_gen.utils import guess_language

log = logging.getLogger(__name__)


def _normalize_path(path: str) -> str:
    path = path.strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def decode_file_records(raw: Optional[str]) -> List[FileArtifact]:
    """
    Decode raw provider text into file artifacts.

    Accepts a JSON array of ``{path, content, type?, language?}`` records,
    optionally wrapped in a code fence or in a ``{"files": [...]}`` object.
    Missing ``type`` defaults to ``file``.

    Raises:
        ResponseParseError: text is not JSON or records have the wrong shape
    """
    data: Any = decode_json_payload(raw or "")
    if isinstance(data, dict) and isinstance(data.get("files"), list):
        data = data["files"]
    if not isinstance(data, list):
        raise ResponseParseError(f"Expected a JSON array of files, got {type(data).__name__}")

    files = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise ResponseParseError(f"File record {index} is not an object")
        if not isinstance(record.get("path"), str):
            raise ResponseParseError(f"File record {index} has no string 'path'")
        if not isinstance(record.get("content"), str):
            raise ResponseParseError(f"File record {index} ({record['path']}) has no string 'content'")

        path = _normalize_path(record["path"])
        language = record.get("language")
        if not isinstance(language, str) or not language:
            language = guess_language(path)
        try:
            files.append(FileArtifact(
                path=path,
                content=record["content"],
                kind=record.get("type") or "file",
                language=language,
            ))
        except ValidationError as e:
            raise ResponseParseError(f"File record {index} ({path}) is invalid: {e.errors()[0]['msg']}") from e
    return files


def validate_files(files: List[FileArtifact]) -> None:
    """Reject an empty set, empty paths and duplicate paths (first violation wins)."""
    if not files:
        raise FileSetValidationError("Provider returned an empty file set")
    seen = set()
    for file in files:
        if not file.path:
            raise FileSetValidationError("File with an empty path")
        if file.path in seen:
            raise FileSetValidationError(f"Duplicate file path: {file.path}")
        seen.add(file.path)


def parse_generated_files(raw: Optional[str], project_name: str = DEFAULT_PROJECT_NAME) -> ParseOutcome:
    """
    Turn provider output into a valid, non-empty file set.

    Never raises: on any decode or validation failure the deterministic
    fallback project for ``project_name`` is returned instead, with
    ``used_fallback`` set and the reason recorded.
    """
    try:
        files = decode_file_records(raw)
        validate_files(files)
        return ParseOutcome(files=files, used_fallback=False)
    except (ResponseParseError, FileSetValidationError) as e:
        log.debug("Falling back to template project: %s", e.message)
        return ParseOutcome(
            files=generate_fallback_project(project_name),
            used_fallback=True,
            reason=e.message,
        )
