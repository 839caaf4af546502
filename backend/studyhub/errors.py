from __future__ import annotations
from typing import Optional


class StudyHubError(Exception):
	"""Base error for every study-tool action.

	``notice`` is the single user-facing message the dashboard shows when the
	action fails; ``str(err)`` keeps the technical detail for logs.
	"""

	notice: str = "Something went wrong. Please try again."

	def __init__(self, message: str = "", *, notice: Optional[str] = None) -> None:
		super().__init__(message or self.notice)
		if notice is not None:
			self.notice = notice


class GenerationError(StudyHubError):
	notice = "The AI tutor could not answer right now. Please try again."


class MissingCredential(GenerationError):
	notice = "No API key is configured. Set GEMINI_API_KEY to start studying."


class TransportFailure(GenerationError):
	pass


class MalformedResponse(GenerationError):
	notice = "The AI tutor sent back something unreadable. Please try again."


class SchemaViolation(GenerationError):
	def __init__(self, message: str = "", *, path: str = "$", notice: Optional[str] = None) -> None:
		super().__init__(f"{path}: {message}" if message else path, notice=notice)
		self.path = path


class PermissionDenied(StudyHubError):
	notice = "Microphone access is required to record."


class EmptyInput(StudyHubError):
	notice = "Please enter some content first."


class InvalidState(StudyHubError):
	notice = "That action is not available right now."


__all__ = [
	"StudyHubError",
	"GenerationError",
	"MissingCredential",
	"TransportFailure",
	"MalformedResponse",
	"SchemaViolation",
	"PermissionDenied",
	"EmptyInput",
	"InvalidState",
]
