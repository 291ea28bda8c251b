"""Failure taxonomy for generation jobs.

Each error carries a stable ``cause`` code that is attached to failed
events and persisted in the error chat message metadata.
"""


class GenerationError(Exception):
    cause = "GenerationError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoProviderConfigured(GenerationError):
    cause = "NoProviderConfigured"

    def __init__(self, message: str = "No AI provider configured. Set Azure OpenAI or Google AI credentials."):
        super().__init__(message)


class ProviderUnavailable(GenerationError):
    cause = "ProviderUnavailable"

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ResponseParseError(GenerationError):
    cause = "ResponseParseError"


class FileSetValidationError(GenerationError):
    cause = "ValidationError"


class DuplicateJobError(GenerationError):
    cause = "DuplicateJobError"

    def __init__(self, project_id: str):
        super().__init__("A generation is already running for this project")
        self.project_id = project_id


class PersistenceError(GenerationError):
    cause = "PersistenceError"


class ProjectNotFound(PersistenceError):
    cause = "ProjectNotFound"

    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class GenerationCancelled(GenerationError):
    cause = "GenerationCancelled"

    def __init__(self, message: str = "Generation was cancelled"):
        super().__init__(message)
