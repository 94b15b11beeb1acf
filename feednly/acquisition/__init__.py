"""Acquisition package: staged escalation from direct render to remote unlocker."""

from feednly.acquisition.models import AcquisitionResult, StageDisposition, StageMeta, StageOutcome
from feednly.acquisition.orchestrator import (
    AcquisitionOrchestrator,
    acquire,
    build_default_orchestrator,
    validate_url,
)
from feednly.acquisition.pacing import Pacer
from feednly.acquisition.stages import DirectRenderStage, ProxiedRenderStage, Stage, UnlockerStage

__all__ = [
    "AcquisitionResult",
    "StageDisposition",
    "StageMeta",
    "StageOutcome",
    "AcquisitionOrchestrator",
    "acquire",
    "build_default_orchestrator",
    "validate_url",
    "Pacer",
    "DirectRenderStage",
    "ProxiedRenderStage",
    "Stage",
    "UnlockerStage",
]
