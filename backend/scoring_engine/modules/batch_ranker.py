"""
Batch Ranker - scores many entities against one profile and ranks them.

Entities are scored independently (in parallel for larger batches); a failing
entity is reported on its own and never aborts the batch. Ranking happens
only after every score is in: total score descending, entity id ascending on
ties, ranks 1..N over successes.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple, Union

from .errors import DuplicateEntityId, ScoringError
from .logger import get_logger
from .models import AggregateScore, AttributeMap, BatchReport, EntityFailure, PreferenceProfile
from .score_calculator import WeightedFactorEngine

# Below this many entities the thread pool costs more than it saves
DEFAULT_PARALLEL_THRESHOLD = 32

Outcome = Union[AggregateScore, EntityFailure]


def rank_key(score: AggregateScore) -> Tuple[float, str]:
    return (-score.total_score, score.entity_id)


class BatchRanker:

    def __init__(self, engine: WeightedFactorEngine, max_workers: Optional[int] = None,
                 parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD):
        self.engine = engine
        self.max_workers = max_workers or os.cpu_count() or 1
        self.parallel_threshold = parallel_threshold
        self.logger = get_logger()

    def _score_one(self, entity_id: str, attributes: AttributeMap,
                   profile: PreferenceProfile) -> Outcome:
        try:
            return self.engine.compute_score(attributes, profile, entity_id=entity_id)
        except ScoringError as e:
            self.logger.entity_failed(entity_id, e.code, e.message)
            return EntityFailure(entity_id=entity_id, error=e.code, message=e.message)

    def rank_batch(self, entities: Sequence[Tuple[str, AttributeMap]],
                   profile: PreferenceProfile) -> BatchReport:
        """
        Score and rank a batch.

        A profile that cannot be scored at all raises InvalidProfile up front;
        everything entity-specific lands in ``BatchReport.failures``.
        """
        self.engine.validate_profile(profile)
        self.logger.step_start(f"Rank batch of {len(entities)} against profile {profile.id}")

        seen = set()
        jobs: List[Tuple[str, AttributeMap]] = []
        failures: List[EntityFailure] = []
        for entity_id, attributes in entities:
            if entity_id in seen:
                error = DuplicateEntityId(entity_id)
                self.logger.entity_failed(entity_id, error.code, error.message)
                failures.append(EntityFailure(entity_id=entity_id, error=error.code, message=error.message))
                continue
            seen.add(entity_id)
            jobs.append((entity_id, attributes))

        if len(jobs) >= self.parallel_threshold and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [executor.submit(self._score_one, entity_id, attributes, profile)
                           for entity_id, attributes in jobs]
                outcomes = [future.result() for future in futures]
        else:
            outcomes = [self._score_one(entity_id, attributes, profile) for entity_id, attributes in jobs]

        scored = [o for o in outcomes if isinstance(o, AggregateScore)]
        failures.extend(o for o in outcomes if isinstance(o, EntityFailure))

        results = [
            score.model_copy(update={'rank': position})
            for position, score in enumerate(sorted(scored, key=rank_key), start=1)
        ]

        self.logger.step_end("Rank batch", success=not failures,
                             details=f"{len(results)} ranked, {len(failures)} failed")
        return BatchReport(results=results, failures=failures)
