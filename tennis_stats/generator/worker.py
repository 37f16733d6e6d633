"""
Match generation worker.

Each worker runs in its own process with its own database engine, generates
its share of matches and commits them batch by batch. The outcome is
reported back as a WorkerResult instead of raising across the process
boundary.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional

from tennis_stats.database.store import Store
from tennis_stats.generator.factories import generate_match_data, make_faker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerTask:
    worker_id: int
    tournament_ids: List[int] = field(repr=False)
    player_ids: List[int] = field(repr=False)
    num_matches: int
    batch_size: int
    database_url: str = field(repr=False)
    seed: Optional[int] = None


@dataclass(frozen=True)
class WorkerResult:
    worker_id: int
    success: bool
    inserted: int = 0
    error: Optional[str] = None


def worker_seed(seed: Optional[int], worker_id: int) -> Optional[int]:
    """Distinct per-worker seed, None stays None"""
    return None if seed is None else seed + worker_id + 1


def execute_task(task: WorkerTask, store: Store) -> WorkerResult:
    """Generate and insert task.num_matches matches in batches of task.batch_size"""
    seed = worker_seed(task.seed, task.worker_id)
    rng = random.Random(seed)
    fake = make_faker(seed)
    inserted = 0

    try:
        for start in range(0, task.num_matches, task.batch_size):
            batch_size = min(task.batch_size, task.num_matches - start)
            batch = [
                generate_match_data(task.tournament_ids, task.player_ids, rng, fake).to_record()
                for _ in range(batch_size)
            ]
            inserted += store.bulk_insert('matches', batch)
            logger.debug(f"Worker {task.worker_id}: Inserted {inserted} matches so far")
    except Exception as e:
        logger.error(f"Worker {task.worker_id} error: {str(e)}")
        return WorkerResult(worker_id=task.worker_id, success=False, inserted=inserted, error=str(e))

    logger.info(f"Worker {task.worker_id}: Completed generating {inserted} matches")
    return WorkerResult(worker_id=task.worker_id, success=True, inserted=inserted)


def run_match_worker(task: WorkerTask) -> WorkerResult:
    """Process pool entry point, opens a dedicated engine for the task"""
    try:
        store = Store.from_url(task.database_url)
    except Exception as e:
        logger.error(f"Worker {task.worker_id} could not connect: {str(e)}")
        return WorkerResult(worker_id=task.worker_id, success=False, error=str(e))

    try:
        return execute_task(task, store)
    finally:
        store.dispose()
