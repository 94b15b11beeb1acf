"""Escalating acquisition: try each stage in order, stop at the first valid result."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

from feednly.acquisition.models import (
    AcquisitionResult,
    AttemptRecord,
    StageDisposition,
    StageMeta,
    StageOutcome,
)
from feednly.acquisition.pacing import Pacer
from feednly.acquisition.stages import (
    DirectRenderStage,
    ProxiedRenderStage,
    Stage,
    UnlockerStage,
)
from feednly.acquisition.unlocker import UnlockerClient
from feednly.browser.navigator import Navigator
from feednly.browser.render import PlaywrightRenderer, Renderer
from feednly.config import settings
from feednly.errors import ConfigurationMissing


def validate_url(url: Optional[str]) -> str:
    """Return *url* stripped, or raise ``ValueError`` unless it is absolute http(s)."""
    if not url or not str(url).strip():
        raise ValueError("URL is required")
    value = str(url).strip()
    try:
        parts = urlsplit(value)
    except ValueError as exc:
        raise ValueError(f"Invalid URL: {value}") from exc
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise ValueError(f"Invalid URL: {value}")
    return value


class AcquisitionOrchestrator:
    """Run stages in order until one produces a valid outcome."""

    def __init__(self, stages: Sequence[Stage]) -> None:
        self._stages = list(stages)

    @property
    def stages(self) -> List[Stage]:
        return list(self._stages)

    def _run_stage(self, stage: Stage, url: str) -> StageOutcome:
        try:
            return stage.run(url)
        except Exception as exc:
            # Stages convert their own errors; this only guards custom stages.
            print(f"[acquire] {stage.step} raised {exc!r}")
            return StageOutcome(
                ok=False,
                stage=stage.step,
                meta=StageMeta(stage=stage.step),
                error=str(exc) or exc.__class__.__name__,
            )

    def run(self, url: str) -> AcquisitionResult:
        """Acquire *url*.

        Raises:
            ValueError: If *url* is missing or not an absolute http(s) URL.
        """
        url = validate_url(url)
        result = AcquisitionResult(ok=False)
        result.steps = {stage.step: StageDisposition.SKIPPED for stage in self._stages}
        print(f"[acquire] start url={url}")

        for stage in self._stages:
            try:
                stage.check_available()
            except ConfigurationMissing as exc:
                print(f"[acquire] {stage.step} skipped: {exc}")
                result.attempts.append(AttemptRecord(stage.step, StageDisposition.SKIPPED, str(exc)))
                continue

            print(f"[acquire] running {stage.step}")
            outcome = self._run_stage(stage, url)
            if outcome.ok and outcome.content is not None:
                result.ok = True
                result.outcome = outcome
                result.steps[stage.step] = StageDisposition.SUCCESS
                result.attempts.append(AttemptRecord(stage.step, StageDisposition.SUCCESS))
                return result

            result.steps[stage.step] = StageDisposition.FAILED
            result.attempts.append(AttemptRecord(stage.step, StageDisposition.FAILED, outcome.error))
            print(f"[acquire] {stage.step} failed: {outcome.error}")

        summary = ", ".join(f"{step}={disposition.value}" for step, disposition in result.steps.items())
        print(f"[acquire] all stages failed ({summary})")
        return result


def build_default_orchestrator(
    renderer: Optional[Renderer] = None,
    pacer: Optional[Pacer] = None,
    unlocker: Optional[UnlockerClient] = None,
) -> AcquisitionOrchestrator:
    """Direct render → proxied render → remote unlocker.

    All three stages are always present; the ones without configuration are
    reported as skipped.
    """
    renderer = renderer or PlaywrightRenderer(headless=settings.headless)
    pacer = pacer or Pacer()
    navigator = Navigator()
    return AcquisitionOrchestrator(
        [
            DirectRenderStage(renderer, navigator=navigator, pacer=pacer),
            ProxiedRenderStage(renderer, navigator=navigator, pacer=pacer),
            UnlockerStage(client=unlocker),
        ]
    )


def acquire(url: str) -> Dict[str, Any]:
    """Acquire *url* with the default stages and return the public JSON shape.

    Raises:
        ValueError: If *url* is missing or invalid.
    """
    return build_default_orchestrator().run(url).to_dict()
