#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Exceptions signalled to callers of the engine.

Everything else that can go wrong while rendering a document is absorbed by
the resilience boundary in ``docrender.services.pipeline``.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations


# -----------------------------------------------------------------------------

class DocRenderError(Exception):
    """Base class for errors raised by docrender."""


# -----------------------------------------------------------------------------

class SourceUnavailableError(DocRenderError, FileNotFoundError):
    """The source file could not be stat()ed or read by the content cache."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"Source not available: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


# -----------------------------------------------------------------------------
