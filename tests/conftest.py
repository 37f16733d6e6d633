from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

import pytest

from tennis_stats.analytics import AggregationEngine
from tennis_stats.database.store import Store
from tennis_stats.models import Match, MatchStats, Player, StatPair, Tournament


class CorpusBuilder:
    """Inserts hand-made players, tournaments and matches through the models"""

    def __init__(self, store: Store) -> None:
        self.store = store
        self._next_rank = 1

    def player(self, player_id: int, name: Optional[str] = None, country: str = "Spain") -> int:
        player = Player(
            id=player_id,
            name=name or f"Player {player_id}",
            rank=self._next_rank,
            country=country,
            age=25,
            hand="Right",
            height=185,
            grand_slams=0,
        )
        self._next_rank += 1
        self.store.bulk_insert("players", [player.to_record()])
        return player_id

    def tournament(self, tournament_id: int, surface: str = "Hard", roster: Iterable[int] = (),
                   start_date: datetime = datetime(2024, 1, 10)) -> int:
        tournament = Tournament(
            id=tournament_id,
            name=f"Tournament {tournament_id} Open",
            location="Paris, France",
            category="ATP 500",
            surface=surface,
            start_date=start_date,
            end_date=start_date + timedelta(days=7),
            prize=100000,
            players=list(roster),
        )
        self.store.bulk_insert("tournaments", [tournament.to_record()])
        self.store.bulk_insert("tournament_players", tournament.roster_records())
        return tournament_id

    def match(self, tournament_id: int, player1_id: int, player2_id: int, winner_id: int,
              duration: int = 120, date: datetime = datetime(2024, 1, 12),
              stats: Optional[Dict[str, tuple]] = None) -> None:
        pairs = {name: StatPair(player1=p1, player2=p2) for name, (p1, p2) in (stats or {}).items()}
        match = Match(
            tournament_id=tournament_id,
            player1_id=player1_id,
            player2_id=player2_id,
            winner_id=winner_id,
            round="Final",
            score="6-4 6-4",
            date=date,
            duration=duration,
            stats=MatchStats(**pairs),
        )
        self.store.bulk_insert("matches", [match.to_record()])


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'tennis.db'}"


@pytest.fixture
def store(database_url):
    store = Store.from_url(database_url)
    store.create_tables()
    yield store
    store.dispose()


@pytest.fixture
def corpus(store) -> CorpusBuilder:
    return CorpusBuilder(store)


@pytest.fixture
def engine(store) -> AggregationEngine:
    return AggregationEngine(store)
