"""Exception hierarchy for Prompter.

The taxonomy is closed: every failure surfaced to the user is one of the
``ErrorKind`` members below. Each error carries a human-readable message,
an actionable ``hint`` (often the exact command to run) and the underlying
cause.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    CONFIGURATION_INVALID = "ConfigurationInvalid"
    TEMPLATE_NOT_FOUND = "TemplateNotFound"
    TEMPLATE_INVALID = "TemplateInvalid"
    CONTENT_COLLECTION = "ContentCollection"
    FIX_MODE_INVALID = "FixModeInvalid"
    OUTPUT_FAILED = "OutputFailed"
    VALIDATION_FAILED = "ValidationFailed"


_KIND_LABELS = {
    ErrorKind.CONFIGURATION_INVALID: "configuration error",
    ErrorKind.TEMPLATE_NOT_FOUND: "template lookup error",
    ErrorKind.TEMPLATE_INVALID: "template error",
    ErrorKind.CONTENT_COLLECTION: "content collection error",
    ErrorKind.FIX_MODE_INVALID: "fix mode error",
    ErrorKind.OUTPUT_FAILED: "output error",
    ErrorKind.VALIDATION_FAILED: "validation error",
}


class PrompterError(Exception):
    """Base exception for all Prompter errors."""

    kind: ErrorKind = ErrorKind.VALIDATION_FAILED

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def label(self) -> str:
        """Short lowercase label used as the prefix of formatted errors."""
        return _KIND_LABELS[self.kind]


class ConfigurationError(PrompterError):
    """Configuration loading, resolution or validation failed."""

    kind = ErrorKind.CONFIGURATION_INVALID


class TemplateNotFoundError(PrompterError):
    """A named template could not be discovered in any templates root."""

    kind = ErrorKind.TEMPLATE_NOT_FOUND

    def __init__(
        self,
        name: str,
        *,
        roots: tuple[str, ...] = (),
        hint: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.name = name
        self.roots = roots
        if hint is None:
            hint = (
                f"Template '{name}' not found. Template names are case-insensitive; "
                "run 'prompter list' to see the available templates."
            )
        super().__init__(f"template not found: {name}", hint=hint, cause=cause)


class TemplateInvalidError(PrompterError):
    """A template could not be parsed or rendered."""

    kind = ErrorKind.TEMPLATE_INVALID

    def __init__(
        self,
        name: str,
        detail: str,
        *,
        hint: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.name = name
        self.detail = detail
        if hint is None:
            hint = (
                f"Template '{name}' has errors. Check for balanced {{{{ }}}} and "
                "{% %} delimiters and that every referenced variable exists."
            )
        super().__init__(
            f"failed to process template '{name}': {detail}", hint=hint, cause=cause
        )


class ContentCollectionError(PrompterError):
    """Collecting prompt input (clipboard, references) failed."""

    kind = ErrorKind.CONTENT_COLLECTION


class FixModeError(PrompterError):
    """Fix-mode content could not be captured."""

    kind = ErrorKind.FIX_MODE_INVALID


class OutputError(PrompterError):
    """Writing the prompt to its destination failed."""

    kind = ErrorKind.OUTPUT_FAILED

    def __init__(
        self,
        target: str,
        *,
        detail: str | None = None,
        hint: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.target = target
        if hint is None:
            hint = _output_hint(target)
        message = f"failed to output to target '{target}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, hint=hint, cause=cause)


class ValidationError(PrompterError):
    """Request or input validation failed."""

    kind = ErrorKind.VALIDATION_FAILED


class SelectionCancelledError(ValidationError):
    """An interactive prompt was aborted by the user."""

    def __init__(self, message: str = "selection cancelled") -> None:
        super().__init__(message, hint="Re-run the command to start over.")


def _output_hint(target: str) -> str:
    if target == "clipboard":
        return (
            "Clipboard access failed. Ensure you're running in a graphical session "
            "with a clipboard tool installed, or use --target stdout instead."
        )
    if target.startswith("file:"):
        return (
            f"Failed to write to file '{target[5:]}'. Check that the directory is "
            "writable."
        )
    if target == "editor":
        return (
            "Editor launch failed. Check that the editor is installed and on PATH, "
            "or set VISUAL/EDITOR, or pass --editor."
        )
    return "Check that the output target is valid and accessible."


# --- Classification ---


def is_recoverable(err: BaseException) -> bool:
    """Return True when the orchestrator may continue past ``err``.

    Missing templates are skipped with a warning; a clipboard failure falls
    back to standard output. Everything else is fatal.
    """
    if isinstance(err, TemplateNotFoundError):
        return True
    if isinstance(err, OutputError):
        return err.target == "clipboard"
    return False


def wrap_error(
    exc: BaseException, fallback: type[PrompterError] = ConfigurationError
) -> PrompterError:
    """Return ``exc`` as a typed error, wrapping foreign exceptions in ``fallback``."""
    if isinstance(exc, PrompterError):
        return exc
    return fallback(str(exc) or type(exc).__name__, cause=exc)


def format_error(err: PrompterError) -> str:
    """Render an error with its suggestion for terminal output."""
    text = f"{err.label}: {err.message}"
    if err.hint:
        text = f"{text}\n\nSuggestion: {err.hint}"
    return text

