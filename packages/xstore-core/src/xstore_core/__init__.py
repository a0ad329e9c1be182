"""
XStore Operator Core Library

Step-based reconciliation engine for replicated XStore clusters.
This package provides the foundational components including:

- Flow / StepResult / StepOutcome: closed set of step outcomes
- Step / StepPipeline: named idempotent steps run sequentially
- ReconcileLoop: daemon driving the pipeline with RequeuePolicy delays
- Feature gates: process-wide registry of boolean toggles
- CLI infrastructure: Typer-based command structure
"""

__version__ = "0.1.0"

from xstore_core.featuregate import FEATURE_GATES, FeatureGate, FeatureGateRegistry
from xstore_core.flow import Flow, StepOutcome, StepResult
from xstore_core.loop import ReconcileLoop
from xstore_core.requeue import RequeuePolicy
from xstore_core.step import ReconcileResult, Step, StepPipeline, step

__all__ = [
    "__version__",
    # Step engine
    "Flow",
    "StepOutcome",
    "StepResult",
    "Step",
    "step",
    "StepPipeline",
    "ReconcileResult",
    # Driving loop
    "ReconcileLoop",
    "RequeuePolicy",
    # Feature gates
    "FEATURE_GATES",
    "FeatureGate",
    "FeatureGateRegistry",
]
