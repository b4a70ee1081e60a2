"""Run-level faults raised by the self-test engine."""

from __future__ import annotations

__all__ = ["ConfigurationError"]


class ConfigurationError(ValueError):
    """A structural fault that prevents a test run from being attempted.

    Raised for a non-callable ``before_each_test``/``after_each_test`` hook or
    an unsupported base URL scheme. Per-example problems (network errors,
    mismatched expectations) never raise; they are recorded as failures.
    """
