from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional

from core.exceptions import UpstreamReadError, ValidationError

from .intervals import as_utc
from .resolver import AvailabilityResolver
from .store import SchedulingStore, business_tz
from .utilization import UtilizationEstimator, efficiency_rating, week_bounds

# skill match dominates; lighter load breaks near-ties
SKILL_WEIGHT = 70.0
LOAD_WEIGHT = 30.0


def skill_match(required: Iterable[str], skills: Iterable[str]) -> float:
    required = {s.strip().lower() for s in required if s and s.strip()}
    if not required:
        return 1.0
    have = {s.strip().lower() for s in skills if s and s.strip()}
    return len(required & have) / len(required)


def combine_score(match: float, utilization: float) -> float:
    load_factor = 1.0 - min(100.0, max(0.0, utilization)) / 100.0
    return round(SKILL_WEIGHT * match + LOAD_WEIGHT * load_factor, 1)


@dataclass
class CompatibilityAssessment:
    worker_id: int
    worker_name: str
    score: float
    available: bool
    reason: str
    skill_match: float
    utilization: float
    efficiency_rating: str


class CompatibilityScorer:
    def __init__(
        self,
        store: SchedulingStore,
        resolver: Optional[AvailabilityResolver] = None,
        estimator: Optional[UtilizationEstimator] = None,
    ):
        self.store = store
        self.resolver = resolver or AvailabilityResolver(store)
        self.estimator = estimator or UtilizationEstimator(store)

    def score(self, job_id: int, original_worker_id: int, candidate_worker_id: int) -> float:
        return self.assess(job_id, original_worker_id, candidate_worker_id).score

    def assess(
        self,
        job_id: int,
        original_worker_id: int,
        candidate_worker_id: int,
        business_id: Optional[int] = None,
    ) -> CompatibilityAssessment:
        """
        - unavailable at the job's exact time → 0 regardless of skills (hard gate)
        - otherwise SKILL_WEIGHT * skill overlap + LOAD_WEIGHT * spare capacity
          in the job's local week
        """
        if candidate_worker_id == original_worker_id:
            raise ValidationError("candidate must differ from the original worker")

        job = self.store.job(job_id, business_id)
        self.store.worker(original_worker_id, job.business_id)
        candidate = self.store.worker(candidate_worker_id, job.business_id)

        start, end = as_utc(job.scheduled_at), job.ends_at
        verdict = self.resolver.resolve(candidate.id, start, end, exclude_job_id=job.id)
        if not verdict.determinate:
            raise UpstreamReadError(verdict.reason)

        match = skill_match(job.required_skills or (), candidate.skills or ())
        week_start, week_end = week_bounds(start, business_tz(self.store.business(job.business_id)))
        utilization = self.estimator.estimate(candidate.id, week_start, week_end, exclude_job_id=job.id)

        score = combine_score(match, utilization) if verdict.available else 0.0
        return CompatibilityAssessment(
            worker_id=candidate.id,
            worker_name=candidate.name,
            score=score,
            available=verdict.available,
            reason=verdict.reason,
            skill_match=round(match, 3),
            utilization=utilization,
            efficiency_rating=efficiency_rating(utilization),
        )
