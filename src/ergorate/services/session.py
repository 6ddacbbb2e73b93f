"""One artifact's assessment: raters → consensus → optional plan.

Raters are invoked concurrently. The session waits cooperatively until
``min_raters`` assessments have arrived (or, with ``collect_all``, every
rater has answered) or the timeout elapses, then cancels stragglers.
Aggregation and planning run only after that barrier, over an immutable
snapshot, so a cancelled session never yields a partial ConsensusResult.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ergorate.config import Settings
from ergorate.consensus.aggregator import ConsensusAggregator, TieBreakPolicy
from ergorate.consensus.schemas import ConsensusResult
from ergorate.constants import ID_HEX_LENGTH, Axis, RaterOutcome
from ergorate.domain.notation import format_notation
from ergorate.domain.value_objects import (
    Artifact,
    RaterAssessment,
    RatingVector,
)
from ergorate.errors import (
    InsufficientRatersError,
    RaterTimeoutError,
    RatingError,
)
from ergorate.logger import AssessmentLogger
from ergorate.planning.planner import TransformationPlan, TransformationPlanner
from ergorate.raters.base import Rater
from ergorate.resilience.errors import classify_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RaterInvocation:
    """What happened when one rater was asked."""

    rater_id: str
    outcome: RaterOutcome
    duration_ms: float
    error: str | None = None
    error_class: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == RaterOutcome.COMPLETED


@dataclass(frozen=True)
class SessionResult:
    session_id: str
    artifact: Artifact
    assessments: tuple[RaterAssessment, ...]
    invocations: tuple[RaterInvocation, ...]
    consensus: ConsensusResult
    plan: TransformationPlan | None
    duration_ms: float


class AssessmentSession:
    """Wires raters, aggregator and planner together for one artifact."""

    def __init__(
        self,
        artifact: Artifact,
        raters: Sequence[Rater],
        *,
        settings: Settings | None = None,
        tie_break: TieBreakPolicy | None = None,
        assessment_logger: AssessmentLogger | None = None,
    ) -> None:
        ids = [r.rater_id for r in raters]
        if len(set(ids)) != len(ids):
            msg = f"Rater ids must be unique, got {ids}"
            raise ValueError(msg)
        self.artifact = artifact
        self.raters = list(raters)
        self.settings = settings or Settings()
        self.session_id = uuid.uuid4().hex[:ID_HEX_LENGTH]
        self._aggregator = ConsensusAggregator(
            self.settings.min_raters, tie_break
        )
        self._planner = TransformationPlanner(self.settings.axis_priority)
        self._audit = assessment_logger

    async def collect(
        self,
    ) -> tuple[list[RaterAssessment], list[RaterInvocation]]:
        """Invoke raters until quorum, completion or timeout.

        Raises ``InsufficientRatersError`` when fewer than
        ``min_raters`` assessments arrive; chained from
        ``RaterTimeoutError`` when the deadline cut raters off.
        """
        settings = self.settings
        semaphore = asyncio.Semaphore(settings.rater_max_concurrency)

        async def _invoke(rater: Rater) -> RaterAssessment:
            async with semaphore:
                return await rater.assess(self.artifact)

        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + settings.rater_timeout_seconds
        tasks: dict[asyncio.Task[RaterAssessment], Rater] = {
            asyncio.create_task(
                _invoke(r), name=f"rater:{r.rater_id}"
            ): r
            for r in self.raters
        }

        assessments: list[RaterAssessment] = []
        invocations: list[RaterInvocation] = []
        pending: set[asyncio.Task[RaterAssessment]] = set(tasks)
        timed_out = False
        try:
            while pending:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    timed_out = True
                    break
                done, pending = await asyncio.wait(
                    pending,
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                elapsed_ms = (loop.time() - started) * 1000
                for task in sorted(done, key=lambda t: tasks[t].rater_id):
                    self._record(
                        tasks[task], task, elapsed_ms, assessments, invocations
                    )
                if (
                    not settings.collect_all_raters
                    and len(assessments) >= self._aggregator.min_raters
                ):
                    break
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        elapsed_ms = (loop.time() - started) * 1000
        timeouts: list[RaterTimeoutError] = []
        for task in sorted(pending, key=lambda t: tasks[t].rater_id):
            rater = tasks[task]
            if timed_out:
                err = RaterTimeoutError(
                    f"no response within {settings.rater_timeout_seconds}s",
                    rater_id=rater.rater_id,
                    artifact_id=self.artifact.id,
                )
                timeouts.append(err)
                self._log_failure(rater.rater_id, err)
                invocations.append(
                    RaterInvocation(
                        rater_id=rater.rater_id,
                        outcome=RaterOutcome.TIMED_OUT,
                        duration_ms=elapsed_ms,
                        error=str(err),
                        error_class=classify_error(err).value,
                    )
                )
            else:
                invocations.append(
                    RaterInvocation(
                        rater_id=rater.rater_id,
                        outcome=RaterOutcome.CANCELLED,
                        duration_ms=elapsed_ms,
                    )
                )

        required = self._aggregator.min_raters
        if len(assessments) < required:
            error = InsufficientRatersError(
                f"{len(assessments)} of {len(self.raters)} rater(s) "
                f"returned a valid assessment, {required} required",
                available=len(assessments),
                required=required,
                artifact_id=self.artifact.id,
            )
            if timeouts:
                raise error from timeouts[0]
            raise error

        assessments.sort(key=lambda a: a.rater_id)
        invocations.sort(key=lambda i: i.rater_id)
        return assessments, invocations

    async def run(
        self,
        target: RatingVector | Mapping[Axis, int] | None = None,
        axis_priority: Sequence[Axis] | None = None,
    ) -> SessionResult:
        """Collect assessments, build the consensus, and plan toward
        ``target`` when one is given."""
        start = time.monotonic()
        try:
            assessments, invocations = await self.collect()
        except InsufficientRatersError as exc:
            self._log_stage("collect", start, error=exc)
            raise
        self._log_stage("collect", start)

        stage_start = time.monotonic()
        consensus = self._aggregator.aggregate(
            assessments, artifact_id=self.artifact.id
        )
        self._log_stage("aggregate", stage_start)

        plan: TransformationPlan | None = None
        if target is not None:
            stage_start = time.monotonic()
            plan = self._planner.plan(
                consensus.consensus_vector,
                target,
                axis_priority,
                artifact_id=self.artifact.id,
            )
            self._log_stage("plan", stage_start)
        duration_ms = (time.monotonic() - start) * 1000

        notation = format_notation(consensus.consensus_vector)
        logger.info(
            "event=session_complete session=%s artifact=%s raters=%d/%d "
            "notation=%s category=%s duration_ms=%.0f",
            self.session_id,
            self.artifact.id,
            len(assessments),
            len(self.raters),
            notation,
            consensus.category.value,
            duration_ms,
        )
        if self._audit is not None:
            self._audit.log_session(
                session_id=self.session_id,
                artifact_id=self.artifact.id,
                raters_invoked=len(self.raters),
                raters_completed=len(assessments),
                notation=notation,
                category=consensus.category.value,
                duration_ms=duration_ms,
            )

        return SessionResult(
            session_id=self.session_id,
            artifact=self.artifact,
            assessments=tuple(assessments),
            invocations=tuple(invocations),
            consensus=consensus,
            plan=plan,
            duration_ms=duration_ms,
        )

    def _record(
        self,
        rater: Rater,
        task: asyncio.Task[RaterAssessment],
        elapsed_ms: float,
        assessments: list[RaterAssessment],
        invocations: list[RaterInvocation],
    ) -> None:
        exc: BaseException | None
        if task.cancelled():
            exc = RatingError(
                f"rater {rater.rater_id} cancelled itself",
                artifact_id=self.artifact.id,
            )
        else:
            exc = task.exception()
        if exc is None:
            assessment = task.result()
            if assessment.artifact_id != self.artifact.id:
                exc = RatingError(
                    f"rater {rater.rater_id} answered for artifact "
                    f"{assessment.artifact_id}",
                    artifact_id=self.artifact.id,
                )
            else:
                assessments.append(assessment)
                invocations.append(
                    RaterInvocation(
                        rater_id=rater.rater_id,
                        outcome=RaterOutcome.COMPLETED,
                        duration_ms=elapsed_ms,
                    )
                )
                return

        self._log_failure(rater.rater_id, exc)
        invocations.append(
            RaterInvocation(
                rater_id=rater.rater_id,
                outcome=RaterOutcome.FAILED,
                duration_ms=elapsed_ms,
                error=str(exc),
                error_class=classify_error(exc).value,
            )
        )

    def _log_stage(
        self,
        stage: str,
        started: float,
        error: BaseException | None = None,
    ) -> None:
        if self._audit is None:
            return
        self._audit.log_stage(
            session_id=self.session_id,
            stage_name=stage,
            status="failed" if error else "completed",
            duration_ms=(time.monotonic() - started) * 1000,
            error=str(error) if error else None,
        )

    def _log_failure(self, rater_id: str, exc: BaseException) -> None:
        error_class = classify_error(exc).value
        logger.warning(
            "event=rater_failed session=%s artifact=%s rater=%s "
            "error_class=%s error=%s",
            self.session_id,
            self.artifact.id,
            rater_id,
            error_class,
            exc,
        )
        if self._audit is not None:
            self._audit.log_rater_failure(
                session_id=self.session_id,
                artifact_id=self.artifact.id,
                rater_id=rater_id,
                error_class=error_class,
                error=str(exc),
            )
