#!/usr/bin/env python3
"""
KUBEACTIONS ERRORS
------------------
Failure taxonomy for the Resource Action Engine. Every error carries the
offending kind and action name so the calling layer can report them verbatim.

Author: KubeActions Team
Date: 2026-10-17
"""

from typing import Optional


class ActionEngineError(Exception):
    """Base class for all engine failures."""

    def __init__(self, message: str, kind: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.action = action

    def __str__(self) -> str:
        scope = []
        if self.kind:
            scope.append(f"kind={self.kind}")
        if self.action:
            scope.append(f"action={self.action}")
        if not scope:
            return self.message
        return f"[{' '.join(scope)}] {self.message}"


class LoadError(ActionEngineError):
    """Raised when the script catalog cannot be built (missing or malformed script)."""

    pass


class DuplicateActionError(LoadError):
    """Raised when a kind defines the same action (or discovery) twice."""

    pass


class CompileError(ActionEngineError):
    """Raised when a script fails to compile or lacks its entry point."""

    pass


class ExecutionError(ActionEngineError):
    """Raised when a script fails at runtime."""

    pass


class ResultShapeError(ActionEngineError):
    """Raised when a script result fails structural validation."""

    pass


class IdentityMismatchError(ActionEngineError):
    """Raised when a patch record does not target the source resource."""

    pass


class UnsupportedOperationError(ActionEngineError):
    """Raised when an action result names an operation other than patch/create."""

    pass


class ActionNotFoundError(ActionEngineError):
    """Raised when the requested action has no script for the resource kind."""

    pass


class SandboxReuseError(ActionEngineError):
    """Raised when a single-use sandbox is asked to execute a second time."""

    pass
