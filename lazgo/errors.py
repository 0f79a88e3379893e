from __future__ import annotations


class ValidationError(ValueError):
    """Form input rejected before any state change."""


class AIServiceError(RuntimeError):
    """The remote text-generation call failed; the message is user-facing."""


class ExportError(ValueError):
    """An export precondition failed; nothing was written."""


class ConfigurationError(RuntimeError):
    """Startup configuration is missing or invalid."""


class SlotStateError(RuntimeError):
    pass
