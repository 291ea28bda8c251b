from __future__ import annotations
import json
import re
from typing import Any, List
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from projectgen.core.errors import ResponseParseError

DEFAULT_PROJECT_NAME = "my-app"

_FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*\n?(.*?)\n?```$", re.DOTALL)


class AnalysisResult(BaseModel):
    """Structured summary of a free-text project description."""
    model_config = ConfigDict(populate_by_name=True)

    suggested_name: str = Field(default=DEFAULT_PROJECT_NAME, alias="projectName")
    kind: str = Field(default="web application", alias="projectType")
    features: List[str] = []
    ui_notes: str = Field(default="", alias="uiRequirements")
    stack: List[str] = Field(default_factory=list, alias="techStack")

    @field_validator("suggested_name", mode="before")
    @classmethod
    def blank_name_falls_back(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_PROJECT_NAME
        return value

    @field_validator("features", "stack", mode="before")
    @classmethod
    def coerce_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @classmethod
    def default(cls) -> "AnalysisResult":
        return cls()

    def to_prompt_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True))


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapping the whole payload, then trim.

    Fences inside the payload (e.g. in a README string) are left alone.
    """
    stripped = (text or "").strip()
    match = _FENCE_RE.match(stripped)
    if match:
        return match.group(1).strip()
    if stripped.startswith("```"):
        # Unterminated fence: drop the opening marker line only.
        _, _, rest = stripped.partition("\n")
        return rest.strip()
    return stripped


def decode_json_payload(text: str) -> Any:
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ResponseParseError("Provider returned an empty response")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Provider response is not valid JSON: {e}") from e
    except RecursionError as e:
        raise ResponseParseError("Provider response is nested too deeply to decode") from e


def parse_analysis(text: str) -> AnalysisResult:
    data = decode_json_payload(text)
    if not isinstance(data, dict):
        raise ResponseParseError(f"Expected a JSON object for analysis, got {type(data).__name__}")
    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(f"Analysis has an invalid shape: {e.error_count()} error(s)") from e


class ProviderAdapter:
    """Capability every generation backend implements.

    ``analyze`` returns structured facts about the description and
    ``generate_files`` returns the raw provider text for the file set;
    decoding that text is the output parser's job.
    """
    name: str

    def is_configured(self) -> bool:
        raise NotImplementedError

    async def analyze(self, description: str) -> AnalysisResult:
        raise NotImplementedError

    async def generate_files(self, analysis: AnalysisResult) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
