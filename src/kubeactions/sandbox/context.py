#!/usr/bin/env python3
"""
KUBEACTIONS SANDBOX CONTEXT
---------------------------
The record of a single script invocation: which script ran, under which
trust tier, how long it took and what it printed. One context per sandbox;
both are discarded together once the call returns.

Author: KubeActions Team
Date: 2026-10-17
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from kubeactions.core.models import Script


class TrustLevel(str, Enum):
    """
    RESTRICTED: pure data/string manipulation only; used for everything
    derived from live resources.
    FULL: regular builtins and imports; local debugging only.
    """
    RESTRICTED = "restricted"
    FULL = "full"


@dataclass
class ScriptContext:
    script: Script
    trust: TrustLevel
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    printed: List[str] = field(default_factory=list)   # Output of print() inside the script

    @property
    def kind(self) -> str:
        return self.script.group_kind.kind

    @property
    def action(self) -> Optional[str]:
        return self.script.action

    @property
    def elapsed_ms(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at) * 1000.0
