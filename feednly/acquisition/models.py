"""Data models for one acquisition run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from feednly.scraper.models import ExtractedContent

STAGE1 = "stage1"
STAGE2 = "stage2"
STAGE3 = "stage3"
BRIGHTDATA = "brightdata"
STEP_ORDER = (STAGE1, STAGE2, STAGE3)


class StageDisposition(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StageMeta:
    """Diagnostics attached to a stage outcome (serialized in camelCase)."""

    stage: str
    duration_seconds: float = 0.0
    fallback_used: bool = False
    blocked: bool = False
    user_agent: Optional[str] = None
    proxy: Optional[str] = None
    attempts: Optional[int] = None
    navigation_wait_until: Optional[str] = None
    navigation_timed_out: Optional[bool] = None
    cost_estimate: Optional[float] = None
    status_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "stage": self.stage,
            "blocked": self.blocked,
            "fallbackUsed": self.fallback_used,
            "durationSeconds": self.duration_seconds,
            "network": {"durationSeconds": self.duration_seconds},
        }
        optional = {
            "userAgent": self.user_agent,
            "proxy": self.proxy,
            "attempts": self.attempts,
            "navigationWaitUntil": self.navigation_wait_until,
            "navigationTimedOut": self.navigation_timed_out,
            "costEstimate": self.cost_estimate,
            "statusCode": self.status_code,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


@dataclass
class StageOutcome:
    """Result of running one stage.  ``ok`` implies valid ``content``."""

    ok: bool
    stage: str
    meta: StageMeta
    content: Optional[ExtractedContent] = None
    error: Optional[str] = None


@dataclass
class AttemptRecord:
    stage: str
    disposition: StageDisposition
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"stage": self.stage, "disposition": self.disposition.value, "error": self.error}


@dataclass
class AcquisitionResult:
    ok: bool
    outcome: Optional[StageOutcome] = None
    steps: Dict[str, StageDisposition] = field(
        default_factory=lambda: {step: StageDisposition.SKIPPED for step in STEP_ORDER}
    )
    attempts: List[AttemptRecord] = field(default_factory=list)

    def _last_error(self) -> Optional[AttemptRecord]:
        for record in reversed(self.attempts):
            if record.disposition is StageDisposition.FAILED:
                return record
        return self.attempts[-1] if self.attempts else None

    def to_dict(self) -> Dict[str, Any]:
        """The public JSON shape returned by :func:`acquire` and ``/scrape``."""
        if self.ok and self.outcome is not None and self.outcome.content is not None:
            content = self.outcome.content
            return {
                "ok": True,
                "title": content.title,
                "description": content.description,
                "price": content.price,
                "images": list(content.images),
                "meta": self.outcome.meta.to_dict(),
            }

        last = self._last_error()
        return {
            "ok": False,
            "status": "blocked",
            "error": last.error if last else None,
            "stage": last.stage if last else None,
            "steps": {step: disposition.value for step, disposition in self.steps.items()},
            "attempts": [record.to_dict() for record in self.attempts],
        }
