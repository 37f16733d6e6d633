from __future__ import annotations

import random

import pytest

from tennis_stats.analytics import AggregationEngine
from tennis_stats.database import Store
from tennis_stats.exceptions import WorkerFailureError
from tennis_stats.generator import DatasetGenerator, partition_matches
from tennis_stats.generator.dataset import main
from tennis_stats.generator.factories import (
    ROSTER_SIZES,
    STAT_RANGES,
    generate_match_data,
    generate_player_data,
    generate_score,
    generate_tournament_data,
    make_faker,
)
from tennis_stats.generator.worker import worker_seed


@pytest.mark.parametrize(
    "count, workers, expected",
    [
        (1000, 4, [250, 250, 250, 250]),
        (10, 4, [3, 3, 3, 1]),
        (2, 4, [1, 1]),
        (0, 4, []),
        (7, 1, [7]),
    ],
)
def test_partition_matches(count, workers, expected):
    assert partition_matches(count, workers) == expected


def test_partition_matches_rejects_bad_arguments():
    with pytest.raises(ValueError):
        partition_matches(-1, 2)
    with pytest.raises(ValueError):
        partition_matches(10, 0)


def test_worker_seeds_are_distinct():
    assert worker_seed(None, 3) is None
    assert len({worker_seed(42, worker_id) for worker_id in range(8)}) == 8


@pytest.mark.parametrize("best_of", [3, 5])
def test_score_gives_the_winner_the_deciding_sets(best_of):
    rng = random.Random(7)
    for _ in range(200):
        player1_wins = rng.random() < 0.5
        sets = [tuple(map(int, s.split("-"))) for s in generate_score(rng, best_of, player1_wins).split()]

        player1_sets = sum(1 for p1, p2 in sets if p1 > p2)
        player2_sets = len(sets) - player1_sets
        winner_sets, loser_sets = (player1_sets, player2_sets) if player1_wins else (player2_sets, player1_sets)
        assert winner_sets == best_of // 2 + 1
        assert loser_sets < winner_sets
        last_p1, last_p2 = sets[-1]
        assert (last_p1 > last_p2) == player1_wins
        for games in sets:
            assert max(games) in (6, 7)


def test_generated_match_is_consistent():
    rng, fake = random.Random(1), make_faker(1)
    for _ in range(100):
        match = generate_match_data([1, 2, 3], [10, 11, 12, 13], rng, fake)

        assert match.tournament_id in (1, 2, 3)
        assert match.player1_id != match.player2_id
        assert match.winner_id in (match.player1_id, match.player2_id)
        for stat, (low, high) in STAT_RANGES.items():
            pair = getattr(match.stats, stat)
            assert low <= pair.player1 <= high
            assert low <= pair.player2 <= high


def test_player_and_tournament_factories():
    rng, fake = random.Random(3), make_faker(3)
    players = [generate_player_data(i, rng, fake) for i in range(20)]
    assert [p.rank for p in players] == list(range(1, 21))
    assert [p.id for p in players] == list(range(1, 21))

    tournament = generate_tournament_data(0, [p.id for p in players], rng, fake)
    assert len(tournament.players) <= 20
    assert len(set(tournament.players)) == len(tournament.players)
    assert tournament.end_date >= tournament.start_date

    big_pool = list(range(1, 501))
    roster = generate_tournament_data(1, big_pool, rng, fake).players
    assert len(roster) in ROSTER_SIZES


def test_small_run_is_referentially_consistent(store):
    summary = DatasetGenerator(store, batch_size=7, seed=11, show_progress=False).run(
        num_players=30, num_tournaments=4, num_matches=50, worker_count=1,
    )

    assert (summary.players, summary.tournaments, summary.matches) == (30, 4, 50)
    assert store.count_rows("matches") == 50

    player_ids = set(store.read_table("players", ["id"])["id"])
    tournament_ids = set(store.read_table("tournaments", ["id"])["id"])
    matches = store.read_table("matches", ["tournament_id", "player1_id", "player2_id", "winner_id"])
    assert set(matches["tournament_id"]) <= tournament_ids
    assert set(matches["player1_id"]) | set(matches["player2_id"]) <= player_ids
    assert (matches["player1_id"] != matches["player2_id"]).all()
    assert ((matches["winner_id"] == matches["player1_id"]) | (matches["winner_id"] == matches["player2_id"])).all()

    ranks = store.read_table("players", ["rank"])["rank"]
    assert sorted(ranks) == list(range(1, 31))


def test_parallel_run_inserts_every_match(store):
    summary = DatasetGenerator(store, batch_size=100, seed=5, show_progress=False).run(
        num_players=40, num_tournaments=6, num_matches=1000, worker_count=4,
    )

    assert summary.matches == 1000
    assert store.count_rows("matches") == 1000

    result = AggregationEngine(store).tournament_statistics(limit=None)
    assert result.count == 6
    assert sum(row["matchCount"] for row in result.stats) == 1000


def test_regeneration_replaces_previous_data(store):
    generator = DatasetGenerator(store, seed=2, show_progress=False)
    generator.run(num_players=10, num_tournaments=2, num_matches=20, worker_count=1)
    generator.run(num_players=10, num_tournaments=2, num_matches=20, worker_count=1)

    assert store.count_rows("players") == 10
    assert store.count_rows("tournaments") == 2
    assert store.count_rows("matches") == 20


def test_seeded_players_are_reproducible(tmp_path):
    rows = []
    for name in ("first.db", "second.db"):
        store = Store.from_url(f"sqlite:///{tmp_path / name}")
        try:
            DatasetGenerator(store, seed=99, show_progress=False).run(
                num_players=15, num_tournaments=0, num_matches=0, worker_count=1,
            )
            rows.append(store.read_table("players").sort_values("id").to_dict("records"))
        finally:
            store.dispose()

    assert rows[0] == rows[1]


@pytest.mark.parametrize("workers", [1, 2])
def test_worker_failure_aborts_the_run(database_url, workers):
    # No tables were created, so every insert fails
    store = Store.from_url(database_url)
    try:
        generator = DatasetGenerator(store, batch_size=5, seed=1, show_progress=False)
        with pytest.raises(WorkerFailureError):
            generator.generate_matches(20, [1], [1, 2], worker_count=workers)
    finally:
        store.dispose()


def test_in_memory_store_cannot_be_shared_across_workers():
    store = Store.from_url("sqlite://")
    try:
        store.create_tables()
        generator = DatasetGenerator(store, show_progress=False)
        with pytest.raises(ValueError):
            generator.generate_matches(10, [1], [1, 2], worker_count=2)
    finally:
        store.dispose()


def test_matches_need_two_players(store):
    generator = DatasetGenerator(store, show_progress=False)
    with pytest.raises(ValueError):
        generator.generate_matches(5, [1], [1], worker_count=1)
    assert generator.generate_matches(0, [], [], worker_count=1) == 0


def test_batch_size_must_be_positive(store):
    with pytest.raises(ValueError):
        DatasetGenerator(store, batch_size=0)


def test_generate_cli(database_url):
    main([
        "--players", "12", "--tournaments", "3", "--matches", "25", "--workers", "1",
        "--seed", "4", "--database-url", database_url, "--no-progress",
    ])

    store = Store.from_url(database_url)
    try:
        assert store.count_rows("players") == 12
        assert store.count_rows("tournaments") == 3
        assert store.count_rows("matches") == 25
    finally:
        store.dispose()


def test_unseeded_workers_draw_their_own_dates(store):
    DatasetGenerator(store, batch_size=50, show_progress=False).run(
        num_players=40, num_tournaments=4, num_matches=400, worker_count=4,
    )

    dates = store.read_table("matches", ["date"])["date"]
    assert len(dates) == 400
    # Shards repeating one another would leave only 100 distinct dates
    assert dates.nunique() > 350


def test_zero_workers_are_rejected(store):
    generator = DatasetGenerator(store, show_progress=False)
    with pytest.raises(ValueError):
        generator.generate_matches(10, [1], [1, 2], worker_count=0)
