"""
Large Dataset Generation

This script populates the store with a synthetic, referentially consistent
corpus:
1. Creates the tables and the indexes used by the reports
2. Clears players, tournaments, rosters and matches from previous runs
3. Generates players and tournaments in batches
4. Generates matches in parallel, one process per worker

A failed worker aborts the run. Batches committed before the failure stay in
the store; rerunning starts by truncating everything.
"""

import argparse
import logging
import math
import random
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import List, Optional, Sequence

from tqdm import tqdm

from tennis_stats.config import (
    BATCH_SIZE,
    NUM_MATCHES,
    NUM_PLAYERS,
    NUM_TOURNAMENTS,
    NUM_WORKERS,
    configure_logging,
    get_database_url,
    mask_database_url,
)
from tennis_stats.database.indexes import ensure_indexes
from tennis_stats.database.store import Store
from tennis_stats.exceptions import WorkerFailureError
from tennis_stats.generator.factories import generate_player_data, generate_tournament_data, make_faker
from tennis_stats.generator.worker import WorkerResult, WorkerTask, execute_task, run_match_worker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationSummary:
    players: int
    tournaments: int
    matches: int
    elapsed_seconds: float


def partition_matches(count: int, worker_count: int) -> List[int]:
    """
    Split count matches across workers using ceil-division.

    Every worker but the last gets the same share; shards that would be
    empty are dropped.
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    if worker_count < 1:
        raise ValueError("worker_count must be at least 1")
    per_worker = math.ceil(count / worker_count)
    shards = []
    for worker_id in range(worker_count):
        start = worker_id * per_worker
        size = min(start + per_worker, count) - start
        if size > 0:
            shards.append(size)
    return shards


def is_in_memory(database_url: str) -> bool:
    return database_url.startswith('sqlite') and (':memory:' in database_url or database_url.rstrip('/') == 'sqlite:')


class DatasetGenerator:
    def __init__(self, store: Store, batch_size: int = BATCH_SIZE, seed: Optional[int] = None,
                 show_progress: bool = True):
        """
        Initialize the dataset generator

        Args:
            store: Store the corpus is written to
            batch_size: Rows per bulk insert
            seed: Makes the run reproducible when set
            show_progress: Display a progress bar while workers run
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.batch_size = batch_size
        self.seed = seed
        self.show_progress = show_progress
        self.rng = random.Random(seed)
        self.fake = make_faker(seed)

    def generate_players(self, count: int) -> List[int]:
        """Generate players with ranks 1..count, returning their ids"""
        if count < 0:
            raise ValueError("count must be non-negative")
        logger.info("Generating players...")
        player_ids: List[int] = []

        for i in range(0, count, self.batch_size):
            batch_size = min(self.batch_size, count - i)
            batch = [generate_player_data(i + j, self.rng, self.fake) for j in range(batch_size)]
            self.store.bulk_insert('players', [player.to_record() for player in batch])
            player_ids.extend(player.id for player in batch)
            logger.info(f"Inserted {len(player_ids)} players so far")

        return player_ids

    def generate_tournaments(self, count: int, player_ids: Sequence[int]) -> List[int]:
        """Generate tournaments and their rosters, returning tournament ids"""
        if count < 0:
            raise ValueError("count must be non-negative")
        logger.info("Generating tournaments...")
        tournament_ids: List[int] = []

        for i in range(0, count, self.batch_size):
            batch_size = min(self.batch_size, count - i)
            batch = [generate_tournament_data(i + j, player_ids, self.rng, self.fake) for j in range(batch_size)]
            self.store.bulk_insert('tournaments', [tournament.to_record() for tournament in batch])

            roster = [record for tournament in batch for record in tournament.roster_records()]
            for start in range(0, len(roster), self.batch_size):
                self.store.bulk_insert('tournament_players', roster[start:start + self.batch_size])

            tournament_ids.extend(tournament.id for tournament in batch)
            logger.info(f"Inserted {len(tournament_ids)} tournaments so far")

        return tournament_ids

    def generate_matches(self, count: int, tournament_ids: Sequence[int], player_ids: Sequence[int],
                         worker_count: Optional[int] = None) -> int:
        """
        Generate count matches, fanning out over worker processes.

        Args:
            count: Total number of matches
            tournament_ids: Pool of tournaments to sample from
            player_ids: Pool of players to sample from, at least two
            worker_count: Number of worker processes, defaults to NUM_WORKERS

        Returns:
            Number of matches inserted
        """
        if count == 0:
            return 0
        if len(player_ids) < 2:
            raise ValueError("At least two players are required to generate matches")
        if not tournament_ids:
            raise ValueError("At least one tournament is required to generate matches")

        if worker_count is None:
            worker_count = NUM_WORKERS
        shards = partition_matches(count, worker_count)
        database_url = self.store.url
        if len(shards) > 1 and is_in_memory(database_url):
            raise ValueError("An in-memory SQLite database cannot be shared with worker processes")

        tasks = [
            WorkerTask(
                worker_id=worker_id,
                tournament_ids=list(tournament_ids),
                player_ids=list(player_ids),
                num_matches=num_matches,
                batch_size=self.batch_size,
                database_url=database_url,
                seed=self.seed,
            )
            for worker_id, num_matches in enumerate(shards)
        ]
        logger.info(f"Generating {count} matches with {len(tasks)} workers...")

        if len(tasks) == 1:
            result = execute_task(tasks[0], self.store)
            self._check_result(result)
            return result.inserted

        total_inserted = 0
        with tqdm(total=count, desc="Generating matches", unit="match", disable=not self.show_progress) as pbar:
            with ProcessPoolExecutor(max_workers=len(tasks)) as executor:
                future_to_task = {executor.submit(run_match_worker, task): task for task in tasks}

                for future in as_completed(future_to_task):
                    task = future_to_task[future]
                    try:
                        result = future.result()
                    except Exception as e:
                        logger.error(f"Worker {task.worker_id} crashed: {str(e)}")
                        result = WorkerResult(worker_id=task.worker_id, success=False, error=str(e))

                    if not result.success:
                        # Workers already running finish their shard before the pool shuts down
                        for pending in future_to_task:
                            pending.cancel()
                    self._check_result(result)

                    total_inserted += result.inserted
                    pbar.update(result.inserted)

        return total_inserted

    @staticmethod
    def _check_result(result: WorkerResult) -> None:
        if not result.success:
            raise WorkerFailureError(result.worker_id, result.error or "unknown error")

    def run(self, num_players: int = NUM_PLAYERS, num_tournaments: int = NUM_TOURNAMENTS,
            num_matches: int = NUM_MATCHES, worker_count: Optional[int] = None) -> GenerationSummary:
        """Create schema and indexes, clear previous data and generate the full corpus"""
        start_time = time.time()

        self.store.create_tables()
        ensure_indexes(self.store)

        logger.info("Clearing existing data...")
        self.store.truncate()

        player_ids = self.generate_players(num_players)
        tournament_ids = self.generate_tournaments(num_tournaments, player_ids)
        inserted = self.generate_matches(num_matches, tournament_ids, player_ids, worker_count)

        elapsed = time.time() - start_time
        logger.info(f"Data generation complete in {elapsed:.2f} seconds")
        return GenerationSummary(
            players=len(player_ids),
            tournaments=len(tournament_ids),
            matches=inserted,
            elapsed_seconds=elapsed,
        )


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Generate a large synthetic tennis dataset")
    parser.add_argument("--players", type=int, default=NUM_PLAYERS, help="Number of players to generate")
    parser.add_argument("--tournaments", type=int, default=NUM_TOURNAMENTS, help="Number of tournaments to generate")
    parser.add_argument("--matches", type=int, default=NUM_MATCHES, help="Number of matches to generate")
    parser.add_argument("--workers", type=int, default=NUM_WORKERS, help="Number of match generation workers")
    parser.add_argument("--batch-size", type=int, default=BATCH_SIZE, help="Rows per bulk insert")
    parser.add_argument("--seed", type=int, help="Random seed for a reproducible dataset")
    parser.add_argument("--database-url", type=str, help="Database URL, defaults to DATABASE_URL")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    args = parser.parse_args(argv)

    configure_logging()
    database_url = get_database_url(args.database_url)
    logger.info(f"Using database URL: {mask_database_url(database_url)}")
    logger.info(f"Using {args.workers} workers, batch size {args.batch_size}")

    store = Store.from_url(database_url)
    try:
        generator = DatasetGenerator(store, batch_size=args.batch_size, seed=args.seed,
                                     show_progress=not args.no_progress)
        summary = generator.run(args.players, args.tournaments, args.matches, args.workers)
        logger.info(f"Database population completed successfully: {summary.players} players, "
                    f"{summary.tournaments} tournaments, {summary.matches} matches")
    except Exception as e:
        logger.error(f"Error generating dataset: {str(e)}")
        raise
    finally:
        store.dispose()


if __name__ == "__main__":
    main()
