"""Domain exceptions for template extraction, injection and compilation.

Every error carries a stable ``error_code``, the HTTP status the API layer
answers with, and an ordered list of troubleshooting hints for the user.
"""

from typing import Any

# Model output is echoed back for diagnostics, never in full.
DIAGNOSTIC_PREVIEW_CHARS = 500


def _preview(text: str | None) -> str | None:
    if text is None:
        return None
    if len(text) <= DIAGNOSTIC_PREVIEW_CHARS:
        return text
    return text[:DIAGNOSTIC_PREVIEW_CHARS] + "..."


class TexFillError(Exception):
    """Base class for errors surfaced to API clients as structured payloads."""

    error_code = "TEXFILL_ERROR"
    status_code = 500
    default_troubleshooting: tuple[str, ...] = ()

    def __init__(self, message: str, troubleshooting: list[str] | None = None) -> None:
        self.message = message
        self.troubleshooting = (
            list(troubleshooting)
            if troubleshooting is not None
            else list(self.default_troubleshooting)
        )
        super().__init__(message)

    def extra(self) -> dict[str, Any] | None:
        """Additional diagnostic context for the error payload."""
        return None


# =============================================================================
# Extraction
# =============================================================================


class ExtractionError(TexFillError):
    """Raised when a template's field schema cannot be extracted."""

    error_code = "EXTRACTION_FAILED"


class MalformedTemplate(ExtractionError):
    """The template lacks the document declaration expected of LaTeX source."""

    error_code = "MALFORMED_TEMPLATE"
    status_code = 400
    default_troubleshooting = (
        "Make sure your template starts with \\documentclass{...}",
        "Include complete LaTeX document structure",
        "Check that you pasted the entire template",
    )


class ExtractionTimeout(ExtractionError):
    """The language model did not answer within the extraction budget."""

    error_code = "EXTRACTION_TIMEOUT"
    status_code = 504
    default_troubleshooting = (
        "Request timed out - try a shorter template",
        "Check your internet connection",
        "Try a simpler LaTeX template",
    )

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Field extraction timed out after {timeout_seconds:g}s")


class ModelServiceError(ExtractionError):
    """The language model service rejected or failed the request."""

    error_code = "MODEL_SERVICE_ERROR"
    status_code = 502
    default_troubleshooting = (
        "Language model API error - check your API key and quota",
        "Check your internet connection",
        "Verify OPENAI_API_KEY is set correctly",
        "Make sure the template is complete and valid",
    )


class InvalidModelOutput(ExtractionError):
    """The model response could not be parsed as a JSON array of fields."""

    error_code = "INVALID_MODEL_OUTPUT"
    status_code = 502
    default_troubleshooting = (
        "The AI response was malformed",
        "Try uploading the template again",
        "Make sure your template has clear placeholder patterns",
        "Check that the template is valid LaTeX syntax",
    )

    def __init__(
        self,
        message: str,
        raw: str,
        cleaned: str | None = None,
        parse_error: str | None = None,
    ) -> None:
        self.raw = raw
        self.cleaned = cleaned
        self.parse_error = parse_error
        super().__init__(message)

    def extra(self) -> dict[str, Any]:
        return {
            "raw": _preview(self.raw),
            "cleaned": _preview(self.cleaned),
            "parse_error": self.parse_error,
        }


class NoFieldsFound(ExtractionError):
    """The model response held no usable field descriptors."""

    error_code = "NO_FIELDS_FOUND"
    status_code = 400
    default_troubleshooting = (
        "Your template might not have clear placeholder patterns",
        "Try adding \\newcommand definitions for fillable fields",
        "Make sure placeholders are clearly marked",
    )

    def __init__(self, candidates: list[Any] | None = None) -> None:
        self.candidates = candidates or []
        super().__init__("No valid fields found in template")

    def extra(self) -> dict[str, Any]:
        return {"candidates_found": len(self.candidates)}


# =============================================================================
# Injection
# =============================================================================


class InjectionError(TexFillError):
    """Raised when values cannot be injected into a template."""

    error_code = "INJECTION_FAILED"
    status_code = 400


class MissingStructure(InjectionError):
    """A structural marker required by LaTeX is absent after substitution."""

    error_code = "MISSING_STRUCTURE"

    def __init__(self, marker: str) -> None:
        self.marker = marker
        if marker == "\\begin{document}":
            hints = [
                "Add \\begin{document} after your preamble",
                "Make sure to include \\end{document} at the end",
                "Verify the template structure is correct",
            ]
        else:
            hints = [
                "Make sure your template starts with \\documentclass{...}",
                "Include \\begin{document} and \\end{document}",
                "Check that the template is complete LaTeX code",
            ]
        super().__init__(f"Invalid LaTeX template: Missing {marker}", hints)

    def extra(self) -> dict[str, Any]:
        return {"marker": self.marker}


# =============================================================================
# Compilation
# =============================================================================


class CompilationFailed(TexFillError):
    """Every configured compiler engine failed to produce a PDF."""

    error_code = "COMPILATION_FAILED"
    status_code = 500

    def __init__(self, attempts: list[Any], troubleshooting: list[str] | None = None) -> None:
        self.attempts = list(attempts)
        super().__init__("PDF generation failed with all compilers", troubleshooting)

    def extra(self) -> dict[str, Any]:
        return {
            "attempts": [attempt.to_dict() for attempt in self.attempts],
            "processors": [attempt.engine_name for attempt in self.attempts],
        }


class WorkspaceError(TexFillError):
    """A scratch workspace could not be removed. Logged, never raised to callers."""

    error_code = "WORKSPACE_ERROR"

    def __init__(self, path: str, cause: BaseException | None = None) -> None:
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Could not remove workspace {path}{detail}")
