"""Troubleshooting hints derived from compiler attempt logs.

Purely advisory: the hints are shown to users next to a failed compilation
and never influence control flow.
"""

from collections.abc import Sequence

from texfill.interfaces.compiler import CompilationAttempt

BASELINE_COMPILATION_HINTS = (
    "Install a LaTeX distribution (TeX Live, MiKTeX, or Tectonic)",
    "Make sure LaTeX executables are in your system PATH",
    "Check that all required packages are available",
    "Verify your template syntax is correct",
    "Try simplifying your template to test basic functionality",
)


def _mentions_missing_file(log: str) -> bool:
    return any("File" in line and "not found" in line for line in log.splitlines())


def _engine_missing(attempt: CompilationAttempt) -> bool:
    return bool(attempt.error_message) and attempt.error_message.startswith("Could not start")


# (hint, predicate) pairs, most specific first.
_SIGNATURES = (
    (
        "Critical LaTeX error - check document structure",
        lambda attempt: "Emergency stop" in attempt.log_tail,
    ),
    (
        "Missing LaTeX package - install required packages",
        lambda attempt: _mentions_missing_file(attempt.log_tail),
    ),
    (
        "LaTeX syntax error detected - check your template",
        lambda attempt: "! LaTeX Error" in attempt.log_tail,
    ),
    (
        "Compilation timed out - the first run may still be downloading packages, try again",
        lambda attempt: bool(attempt.error_message) and "timed out" in attempt.error_message,
    ),
)


def compilation_hints(attempts: Sequence[CompilationAttempt]) -> list[str]:
    """Build ordered troubleshooting hints for a failed compilation.

    Targeted hints for failure signatures found in any attempt come first,
    followed by the generic baseline hints.

    Args:
        attempts: The attempt log of the failed compilation.

    Returns:
        Hint strings, without duplicates.
    """
    targeted = [
        hint
        for hint, matches in _SIGNATURES
        if any(matches(attempt) for attempt in attempts)
    ]
    if attempts and all(_engine_missing(attempt) for attempt in attempts):
        targeted.append("No LaTeX engine could be started - install Tectonic or TeX Live")
    return targeted + list(BASELINE_COMPILATION_HINTS)
