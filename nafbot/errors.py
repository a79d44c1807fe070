"""nafbot/errors.py

Exception taxonomy for the resolution pipeline.
"""

from __future__ import annotations


class NafbotError(Exception):
    """Base class for all nafbot errors."""


class InvalidRequest(NafbotError):
    """The user message is missing or empty. No resolver has run."""


class GenerationFailure(NafbotError):
    """The generation collaborator failed (network, auth or provider error).

    The original exception is chained as ``__cause__`` for operators; callers
    should only surface a generic processing failure to users.
    """


class AuditFailure(NafbotError):
    """An audit sink could not record an outcome. Always recovered locally."""
