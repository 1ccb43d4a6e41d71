"""Ordered steps with compensation, and the resume orchestrator.

Public Interface:
    - Step: Named step with optional compensation
    - StepContext: Results shared between steps
    - StepRunner: Runs steps in order, unwinding on failure
    - ResumeOrchestrator: Rebuilds resume state for a run
"""

from .resume import ResumeOrchestrator
from .steps import Step
from .steps import StepContext
from .steps import StepRunner

__all__ = [
    "ResumeOrchestrator",
    "Step",
    "StepContext",
    "StepRunner",
]
