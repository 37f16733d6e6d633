"""
Indexes required by the report workload.

They are created before any data is generated so that bulk inserts maintain
them incrementally instead of requiring a full reindex afterwards.
"""

import logging
from typing import List, Tuple

from tennis_stats.database.store import Store

logger = logging.getLogger(__name__)

INDEX_DEFINITIONS: List[Tuple[str, Tuple[str, ...]]] = [
    # Player indexes
    ('players', ('name',)),
    ('players', ('country',)),
    ('players', ('rank',)),
    # Tournament indexes
    ('tournaments', ('name',)),
    ('tournaments', ('start_date',)),
    ('tournaments', ('category',)),
    ('tournaments', ('surface',)),
    ('tournament_players', ('player_id',)),
    # Match indexes, these carry the joins and groupings of every report
    ('matches', ('tournament_id',)),
    ('matches', ('player1_id',)),
    ('matches', ('player2_id',)),
    ('matches', ('winner_id',)),
    ('matches', ('date',)),
    ('matches', ('aces_player1',)),
    ('matches', ('aces_player2',)),
    # Compound indexes
    ('matches', ('player1_id', 'player2_id')),
    ('matches', ('tournament_id', 'round')),
    ('matches', ('player1_id', 'winner_id')),
    ('matches', ('player2_id', 'winner_id')),
]


def ensure_indexes(store: Store) -> List[str]:
    """
    Create every index the reports rely on.

    Args:
        store: Store whose tables already exist

    Returns:
        Names of the ensured indexes
    """
    logger.info("Creating indexes...")
    names = [store.create_index(table, columns) for table, columns in INDEX_DEFINITIONS]
    logger.info(f"{len(names)} indexes created successfully")
    return names
