"""Stage transitions for a report: Data Collection -> Investment Memo -> Curated Memo.

Navigation is pure. Whether the stage being entered needs a memo drafted is
reported as a separate effect so the caller can run generation explicitly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from venture_analytica.models.report_models import AgentStatus, Report, Stage
from venture_analytica.services.data_sources import can_proceed


class StageTransitionError(Exception):
    def __init__(self, current: Stage, target: Stage, reason: str) -> None:
        super().__init__(reason)
        self.current = current
        self.target = target
        self.reason = reason


@dataclass(frozen=True)
class Navigation:
    report: Report
    effect: Optional[Stage] = None


def guard_failure(report: Report, target: Stage) -> Optional[str]:
    """Return why ``report`` cannot enter ``target`` from the previous stage, or None."""

    if target == Stage.INVESTMENT_MEMO and not can_proceed(report):
        return "Select at least one completed data source before generating the investment memo."
    if target == Stage.CURATED_MEMO and not report.investment_memo.is_completed:
        return "The investment memo must be generated before curating it."
    return None


def advance(report: Report) -> Report:
    current = report.current_stage
    if current == Stage.CURATED_MEMO:
        raise StageTransitionError(current, current, "Report is already at the final stage.")
    target = Stage(current + 1)
    reason = guard_failure(report, target)
    if reason:
        raise StageTransitionError(current, target, reason)
    return report.model_copy(update={"current_stage": target})


def retreat(report: Report, target: Stage) -> Report:
    if target > report.current_stage:
        raise StageTransitionError(
            report.current_stage, target, "Cannot retreat to a stage that has not been reached."
        )
    return report.model_copy(update={"current_stage": target})


def pending_generation(report: Report) -> Optional[Stage]:
    stage = report.current_stage
    if stage == Stage.DATA_COLLECTION:
        return None
    memo = report.memo_for(stage)
    if memo.status == AgentStatus.IDLE and not memo.content:
        return stage
    return None


def navigate_to(report: Report, target: Stage) -> Navigation:
    current = report.current_stage
    if target == current + 1:
        moved = advance(report)
    elif target <= current:
        moved = retreat(report, target)
    else:
        raise StageTransitionError(current, target, "Stages must be completed in order.")
    return Navigation(report=moved, effect=pending_generation(moved))
