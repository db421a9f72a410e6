"""loadburst: concurrent HTTP(S) load generation."""

from __future__ import annotations

from loadburst._internal.config import RunConfig, build_config
from loadburst.engine.outcomes import OutcomeCategory, OutcomeCounter, OutcomeEvent
from loadburst.engine.runner import LoadTestRunner
from loadburst.engine.state import RunState
from loadburst.metrics.models import Report

__version__ = "0.1.0"

__all__ = [
    "LoadTestRunner",
    "OutcomeCategory",
    "OutcomeCounter",
    "OutcomeEvent",
    "Report",
    "RunConfig",
    "RunState",
    "build_config",
]
