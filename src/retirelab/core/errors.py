"""
Error classes for RetireLab.

This module defines the exception taxonomy used throughout the simulator:
configuration and validation failures raised before a run starts, a warning
category for tax/withdrawal iterations that do not settle, and a fatal error
for impossible internal states.
"""

from __future__ import annotations

VALIDATION_FAILED = "VALIDATION_FAILED"


class RetireLabError(Exception):
    """Base class for all RetireLab errors."""


class ConfigError(RetireLabError):
    """
    Configuration error during plan setup.

    Raised for problems that are not field-level validation issues, such as an
    unknown withdrawal strategy name, an unknown market scenario id, or a tax
    model the engine does not implement.

    **Example Usage:**
        ```python
        from retirelab.core.errors import ConfigError
        from retirelab.core.registry import get_strategy

        try:
            strategy = get_strategy("alphabetical")
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
    """

    pass


class PlanValidationError(ConfigError):
    """
    Raised when a plan fails validation before any simulation work begins.

    The error is structured: ``code`` is always ``VALIDATION_FAILED``, ``report``
    holds the full :class:`~retirelab.core.validation.ValidationReport`, and
    ``problem_fields`` lists the offending field paths (for example
    ``accounts[1].cost_basis``).

    Attributes:
        code: Machine-readable error code
        report: The validation report object (if available)
        problem_fields: Field paths that caused issues
    """

    code = VALIDATION_FAILED

    def __init__(
        self,
        message: str,
        report=None,
        problem_fields: list[str] | None = None,
    ):
        self.report = report
        self.problem_fields = problem_fields or []
        super().__init__(self._fmt(message))

    def _fmt(self, msg: str) -> str:
        """Format the error message with additional context."""
        suffix = ""
        if self.problem_fields:
            preview = ", ".join(self.problem_fields[:10])
            more = (
                f" (+{len(self.problem_fields)-10} more)"
                if len(self.problem_fields) > 10
                else ""
            )
            suffix = f" | fields: [{preview}]{more}"
        return f"[{self.code}] {msg}{suffix}"

    def to_dict(self) -> dict:
        """Structured payload for API/CLI consumers."""
        return {
            "code": self.code,
            "message": str(self),
            "fields": list(self.problem_fields),
            "issues": self.report.to_dict()["issues"] if self.report else [],
        }


class PlanLoadError(ValueError):
    """Raised when a plan file cannot be read or parsed."""


class SimulationInvariantError(RetireLabError):
    """
    Raised when the engine reaches a state that should be impossible.

    Withdrawals are clamped to available balances and unmet amounts become
    shortfall, so a negative balance after clamping indicates a logic error
    rather than a user error.
    """

    def __init__(self, year: int, message: str):
        self.year = year
        super().__init__(f"[year {year}] {message}")


class ConvergenceWarning(UserWarning):
    """Tax/withdrawal iteration did not settle within tolerance."""
