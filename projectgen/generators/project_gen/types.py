"""Dataclasses for project file generation."""
from dataclasses import dataclass
from typing import List, Optional
from projectgen.schemas.projects import FileArtifact


@dataclass
class ParseOutcome:
    """Result of turning provider output into a file set."""
    files: List[FileArtifact]
    used_fallback: bool
    reason: Optional[str] = None  # Why the fallback was used
