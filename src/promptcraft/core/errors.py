"""Error taxonomy for the prompt generation engine.

Caller-correctable errors surface to the caller with an explicit kind.
``RetrievalDegraded`` and ``EnhancementSkipped`` are raised and caught inside
their own stage; callers only ever see them as names in
``GeneratedPrompt.degradations``.
"""

from __future__ import annotations


class PromptCraftError(Exception):
    """Base class for all engine errors."""


# ---------------------------------------------------------------------------
# Caller-correctable (fatal for the request)
# ---------------------------------------------------------------------------

class CallerInputError(PromptCraftError, ValueError):
    """The request itself is wrong and the caller can fix it."""


class MissingRequiredFieldError(CallerInputError):
    """Project name or description is absent or blank."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Required field '{field_name}' is missing or empty")
        self.field_name = field_name


class UnsupportedToolError(CallerInputError):
    """The requested target tool has no loaded profile."""

    def __init__(self, tool_id: str, known_tools: list[str] | None = None) -> None:
        known = ", ".join(known_tools or [])
        message = f"Unsupported tool: {tool_id!r}"
        if known:
            message += f" (supported: {known})"
        super().__init__(message)
        self.tool_id = tool_id


class UnsupportedStageError(CallerInputError):
    """The requested pipeline stage is not one the engine knows."""

    def __init__(self, stage: str) -> None:
        super().__init__(f"Unsupported stage: {stage!r}")
        self.stage = stage


# ---------------------------------------------------------------------------
# Configuration / composition (no graceful fallback)
# ---------------------------------------------------------------------------

class ProfileConfigError(PromptCraftError):
    """Tool profile configuration is malformed. Fatal at startup."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Invalid tool profile configuration:\n" + "\n".join(errors))
        self.errors = errors


class CompositionFailure(PromptCraftError):
    """Deterministic template filling failed, meaning a profile is corrupt."""


class GenerationFailedError(PromptCraftError):
    """Generation could not produce a prompt at all."""


# ---------------------------------------------------------------------------
# Non-fatal conditions
# ---------------------------------------------------------------------------

class RetrievalDegraded(PromptCraftError):
    """Retrieval store/embedding failure, timeout, or empty-query fallback."""


class EnhancementSkipped(PromptCraftError):
    """Enhancement timed out, failed, returned junk, or is switched off."""
