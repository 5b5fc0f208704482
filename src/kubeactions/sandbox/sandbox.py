#!/usr/bin/env python3
"""
KUBEACTIONS SANDBOX - The Isolation Chamber
-------------------------------------------
Executes exactly one operator-authored script against one input and is then
thrown away. Scripts are semi-trusted: in the RESTRICTED tier they are
compiled with RestrictedPython and see only pure data, string and math
facilities. There is no import, no open(), no access to underscore
attributes, and no attribute writes outside dicts and lists. With no import
there is no threading either, so nothing a script starts can outlive the call.

Script contract:
    discovery scripts define   discover(obj)        -> list of action records
    action scripts define      run(obj, params)     -> manifest or operation list

Author: KubeActions Team
Date: 2026-10-17
"""

import builtins
import logging
import math
import operator
import random
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from RestrictedPython import (
    compile_restricted_exec,
    limited_builtins,
    safe_builtins,
)
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)
from RestrictedPython.PrintCollector import PrintCollector

from kubeactions.core.errors import CompileError, ExecutionError, SandboxReuseError
from kubeactions.core.models import Script
from kubeactions.sandbox.bridge import clone, from_sandbox, to_sandbox
from kubeactions.sandbox.context import ScriptContext, TrustLevel

logger = logging.getLogger("kubeactions.sandbox")

# Pure data builtins RestrictedPython leaves out of safe_builtins
DATA_BUILTINS: Dict[str, Any] = {
    "dict": dict,
    "enumerate": enumerate,
    "min": min,
    "max": max,
    "sum": sum,
    "any": any,
    "all": all,
    "reversed": reversed,
    "map": map,
    "filter": filter,
    "set": set,
    "frozenset": frozenset,
    # Stateless module; random is a fresh instance per call, see _build_globals
    "math": math,
}

# Helpers available in both tiers; datetime classes only, never the module
SCRIPT_HELPERS: Dict[str, Any] = {
    "deepcopy": clone,
    "datetime": datetime,
    "timedelta": timedelta,
    "timezone": timezone,
}

INPLACE_OPERATORS: Dict[str, Callable[[Any, Any], Any]] = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "^=": operator.ixor,
    "|=": operator.ior,
}


def _inplacevar(op: str, target: Any, value: Any) -> Any:
    """RestrictedPython rewrites 'x += y' into a call to this guard."""
    fn = INPLACE_OPERATORS.get(op)
    if fn is None:
        raise ValueError(f"Unsupported in-place operator {op!r}")
    return fn(target, value)


def _apply(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


class ContextPrintCollector(PrintCollector):
    """Routes print() output from a restricted script into its ScriptContext."""

    def __init__(self, sink, _getattr_=None):
        super().__init__(_getattr_)
        self.txt = sink


class Sandbox:
    """
    A single-use execution environment. Every execute() builds fresh globals
    and a fresh builtins table; a second execute() on the same instance is
    refused so that nothing can leak between unrelated invocations.
    """

    def __init__(self, trust: TrustLevel = TrustLevel.RESTRICTED):
        self.trust = TrustLevel(trust)
        self.context: Optional[ScriptContext] = None
        self._consumed = False

    def execute(self, script: Script, *inputs: Any) -> Any:
        """
        Runs the script's entry point with the bridged inputs and returns the
        bridged, validated result.
        """
        kind, action = script.group_kind.kind, script.action
        if self._consumed:
            raise SandboxReuseError("Sandbox instances are single-use", kind=kind, action=action)
        self._consumed = True

        context = ScriptContext(script=script, trust=self.trust)
        self.context = context

        # --- PHASE 1: COMPILE UNDER THE TIER RULES ---
        code = self._compile(script)

        # --- PHASE 2: MODULE BODY IN ISOLATED GLOBALS ---
        env = self._build_globals(context)
        try:
            exec(code, env)
        except Exception as e:
            raise ExecutionError(f"Script body failed: {type(e).__name__}: {e}",
                                 kind=kind, action=action) from e

        entry = env.get(script.entrypoint)
        if not callable(entry):
            raise CompileError(f"Script does not define {script.entrypoint}()",
                               kind=kind, action=action)

        # --- PHASE 3: ENTRY POINT ON PRIVATE COPIES ---
        try:
            args = [to_sandbox(value) for value in inputs]
        except TypeError as e:
            raise ExecutionError(f"Input cannot be passed to the script: {e}", kind=kind, action=action) from e
        context.started_at = time.perf_counter()
        try:
            raw = entry(*args)
        except Exception as e:
            raise ExecutionError(f"{type(e).__name__}: {e}", kind=kind, action=action) from e
        finally:
            context.finished_at = time.perf_counter()
            if context.printed:
                logger.debug(f"{script.label} printed: {''.join(context.printed).rstrip()}")

        logger.debug(f"{script.label} finished in {context.elapsed_ms:.2f}ms ({self.trust.value})")

        # --- PHASE 4: ONLY PLAIN DATA LEAVES THE SANDBOX ---
        return from_sandbox(raw, kind=kind, action=action)

    def _compile(self, script: Script):
        kind, action = script.group_kind.kind, script.action
        if self.trust is TrustLevel.FULL:
            try:
                return compile(script.source, script.origin, "exec")
            except SyntaxError as e:
                raise CompileError(f"line {e.lineno}: {e.msg}", kind=kind, action=action) from e

        result = compile_restricted_exec(script.source, filename=script.origin)
        for warning in result.warnings:
            logger.debug(f"{script.label}: {warning}")
        if result.errors or result.code is None:
            raise CompileError("; ".join(result.errors) or "restricted compilation failed",
                               kind=kind, action=action)
        return result.code

    def _build_globals(self, context: ScriptContext) -> Dict[str, Any]:
        if self.trust is TrustLevel.FULL:
            env = {"__builtins__": dict(vars(builtins)), "__name__": "kubeactions_script"}
            env.update(SCRIPT_HELPERS)
            return env

        script_builtins: Dict[str, Any] = {}
        script_builtins.update(safe_builtins)
        script_builtins.update(limited_builtins)
        script_builtins.update(DATA_BUILTINS)
        script_builtins.update(SCRIPT_HELPERS)
        script_builtins["random"] = random.Random()

        def _print_(_getattr_=None):
            return ContextPrintCollector(context.printed, _getattr_)

        return {
            "__builtins__": script_builtins,
            "__name__": "kubeactions_script",
            "__metaclass__": type,
            "_getattr_": safer_getattr,
            "_getitem_": default_guarded_getitem,
            "_getiter_": default_guarded_getiter,
            "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
            "_unpack_sequence_": guarded_unpack_sequence,
            "_write_": full_write_guard,
            "_inplacevar_": _inplacevar,
            "_apply_": _apply,
            "_print_": _print_,
        }


class SandboxFactory:
    """
    Produces one fresh Sandbox per invocation. Instances are never pooled:
    a caller that abandons a call (e.g. on its own deadline) simply drops it.
    """

    def __init__(self, trust: TrustLevel = TrustLevel.RESTRICTED):
        self.trust = TrustLevel(trust)
        if self.trust is TrustLevel.FULL:
            logger.warning("Sandbox trust is FULL: scripts can import any module. Use for local debugging only.")

    def create(self) -> Sandbox:
        return Sandbox(self.trust)
