"""Izanami error types.

Task and reflection failures are not wrapped: the runner keeps the raw
exception objects raised by the caller's code.  The only error the package
raises itself is ``ConfigurationError``.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid runner configuration.

    Raised synchronously at construction, before any run can start.

    Examples:
    - ``task`` missing or not callable.
    - ``max_attempts`` / ``error_threshold`` not a positive integer.
    - ``error_sink`` without a callable ``record`` method.
    """
