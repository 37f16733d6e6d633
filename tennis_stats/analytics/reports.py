"""
Report pipelines.

Every report is a pure function of the store contents and its parameters:
it loads projected frames and chains stages from stages.py. Output rows use
the camelCase field names of the HTTP response.
"""

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from tennis_stats.analytics.stages import (
    OTHER_BUCKET,
    bucketize,
    compute_ratio,
    group_aggregate,
    join,
    limit_rows,
    role_flatten,
    round_columns,
    sort_rows,
    threshold_filter,
    to_records,
)
from tennis_stats.database.store import Store
from tennis_stats.models import STAT_FIELDS

WIN_PERCENTAGE_COLUMNS = {
    'player_id': 'playerId',
    'player_name': 'playerName',
    'player_country': 'playerCountry',
    'surface': 'surface',
    'total_matches': 'totalMatches',
    'wins': 'wins',
    'win_percentage': 'winPercentage',
}

DURATION_COLUMNS = {
    'surface': 'surface',
    'average_duration': 'averageDuration',
    'max_duration': 'maxDuration',
    'min_duration': 'minDuration',
    'total_matches': 'totalMatches',
}

PERFORMANCE_COLUMNS = {
    'player_id': 'playerId',
    'player_name': 'playerName',
    'player_country': 'playerCountry',
    'total_matches': 'totalMatches',
    'wins': 'wins',
    'win_percentage': 'winPercentage',
    'aces_per_match': 'acesPerMatch',
    'double_faults_per_match': 'doubleFaultsPerMatch',
    'avg_first_serve_percentage': 'avgFirstServePercentage',
    'avg_break_points_converted': 'avgBreakPointsConverted',
}

TOURNAMENT_COLUMNS = {
    'tournament_id': 'tournamentId',
    'name': 'name',
    'location': 'location',
    'category': 'category',
    'surface': 'surface',
    'prize': 'prize',
    'start_date': 'startDate',
    'end_date': 'endDate',
    'player_count': 'playerCount',
    'match_count': 'matchCount',
}

YEAR_SURFACE_COLUMNS = {
    'year': 'year',
    'surface': 'surface',
    'match_count': 'matchCount',
    'avg_duration': 'avgDuration',
}

DISTRIBUTION_COLUMNS = {
    'surface': 'surface',
    'bucket': 'bucket',
    'match_count': 'matchCount',
}

ID_COLUMNS = ['id', 'tournament_id', 'player_id', 'player1_id', 'player2_id', 'winner_id']


def load_frame(store: Store, table: str, columns: Sequence[str]) -> pd.DataFrame:
    """Projected read with id columns typed as integers, even when empty"""
    df = store.read_table(table, columns)
    for column in ID_COLUMNS:
        if column in df.columns:
            df[column] = df[column].astype('int64')
    return df


def load_surfaces(store: Store) -> pd.DataFrame:
    return load_frame(store, 'tournaments', ['id', 'surface']).rename(columns={'id': 'tournament_id'})


def load_players(store: Store) -> pd.DataFrame:
    players = load_frame(store, 'players', ['id', 'name', 'country'])
    return players.rename(columns={'id': 'player_id', 'name': 'player_name', 'country': 'player_country'})


def player_win_percentage_by_surface(store: Store, limit: Optional[int], min_matches: int) -> List[dict]:
    """Win rate of every player on every surface they played enough matches on"""
    matches = load_frame(store, 'matches', ['tournament_id', 'player1_id', 'player2_id', 'winner_id'])
    with_surface = join(matches, load_surfaces(store), on='tournament_id')

    participants = role_flatten(with_surface, carry=['surface'])
    grouped = group_aggregate(participants, ['player_id', 'surface'], {
        'total_matches': ('is_winner', 'count'),
        'wins': ('is_winner', 'sum'),
    })
    qualified = threshold_filter(grouped, 'total_matches', min_matches)
    rated = compute_ratio(qualified, 'win_percentage', 'wins', 'total_matches', scale=100, ndigits=1)

    named = join(rated, load_players(store), on='player_id')
    ranked = sort_rows(named, ['win_percentage', 'player_id', 'surface'], ascending=[False, True, True])
    return to_records(limit_rows(ranked, limit), WIN_PERCENTAGE_COLUMNS)


def match_duration_stats_by_surface(store: Store) -> List[dict]:
    """Average, shortest and longest match duration per surface"""
    matches = load_frame(store, 'matches', ['tournament_id', 'duration'])
    with_surface = join(matches, load_surfaces(store), on='tournament_id')

    grouped = group_aggregate(with_surface, 'surface', {
        'average_duration': ('duration', 'mean'),
        'max_duration': ('duration', 'max'),
        'min_duration': ('duration', 'min'),
        'total_matches': ('duration', 'count'),
    })
    rounded = round_columns(grouped, {'average_duration': 0})
    ranked = sort_rows(rounded, ['average_duration', 'surface'], ascending=[False, True])
    return to_records(ranked, DURATION_COLUMNS)


def player_performance_stats(store: Store, limit: Optional[int], min_matches: int) -> List[dict]:
    """Win rate and serve statistics per player across all surfaces"""
    stat_columns = [f'{stat}_{role}' for stat in STAT_FIELDS for role in ('player1', 'player2')]
    matches = load_frame(store, 'matches', ['player1_id', 'player2_id', 'winner_id'] + stat_columns)

    participants = role_flatten(matches, role_fields=STAT_FIELDS)
    grouped = group_aggregate(participants, 'player_id', {
        'total_matches': ('is_winner', 'count'),
        'wins': ('is_winner', 'sum'),
        'total_aces': ('aces', 'sum'),
        'total_double_faults': ('double_faults', 'sum'),
        'avg_first_serve_percentage': ('first_serve_percentage', 'mean'),
        'avg_break_points_converted': ('break_points_converted', 'mean'),
    })
    qualified = threshold_filter(grouped, 'total_matches', min_matches)

    rated = compute_ratio(qualified, 'win_percentage', 'wins', 'total_matches', scale=100, ndigits=1)
    rated = compute_ratio(rated, 'aces_per_match', 'total_aces', 'total_matches', ndigits=1)
    rated = compute_ratio(rated, 'double_faults_per_match', 'total_double_faults', 'total_matches', ndigits=1)
    rated = round_columns(rated, {'avg_first_serve_percentage': 1, 'avg_break_points_converted': 1})

    named = join(rated, load_players(store), on='player_id')
    ranked = sort_rows(named, ['win_percentage', 'player_id'], ascending=[False, True])
    return to_records(limit_rows(ranked, limit), PERFORMANCE_COLUMNS)


def tournament_statistics(store: Store, limit: Optional[int]) -> List[dict]:
    """
    Roster size and number of matches played per tournament.

    playerCount is the roster size, which is sampled independently of the
    matches and may not match who actually played there.
    """
    tournaments = load_frame(store, 'tournaments', [
        'id', 'name', 'location', 'category', 'surface', 'prize', 'start_date', 'end_date',
    ]).rename(columns={'id': 'tournament_id'})
    roster_sizes = store.group_count('tournament_players', 'tournament_id', 'player_count')
    match_counts = store.group_count('matches', 'tournament_id', 'match_count')

    with_rosters = join(tournaments, roster_sizes.astype('int64'), on='tournament_id', how='left')
    with_matches = join(with_rosters, match_counts.astype('int64'), on='tournament_id', how='left')
    for column in ('player_count', 'match_count'):
        with_matches[column] = with_matches[column].fillna(0).astype('int64')

    ranked = limit_rows(sort_rows(with_matches, ['match_count', 'tournament_id'], ascending=[False, True]), limit)
    for column in ('start_date', 'end_date'):
        ranked[column] = pd.to_datetime(ranked[column]).map(lambda ts: ts.isoformat())
    return to_records(ranked, TOURNAMENT_COLUMNS)


def matches_by_year_and_surface(store: Store) -> List[dict]:
    """Match count and average duration per calendar year and surface"""
    matches = load_frame(store, 'matches', ['tournament_id', 'date', 'duration'])
    matches['year'] = pd.to_datetime(matches['date']).dt.year.astype('int64')
    with_surface = join(matches, load_surfaces(store), on='tournament_id')

    grouped = group_aggregate(with_surface, ['year', 'surface'], {
        'match_count': ('duration', 'count'),
        'avg_duration': ('duration', 'mean'),
    })
    rounded = round_columns(grouped, {'avg_duration': 0})
    return to_records(sort_rows(rounded, ['year', 'surface']), YEAR_SURFACE_COLUMNS)


def match_duration_distribution(store: Store, boundaries: Sequence[int]) -> List[dict]:
    """Histogram of match durations per surface, buckets labelled by lower bound"""
    matches = load_frame(store, 'matches', ['tournament_id', 'duration'])
    with_surface = join(matches, load_surfaces(store), on='tournament_id')

    bucketed = bucketize(with_surface, 'duration', boundaries)
    grouped = group_aggregate(bucketed, ['surface', 'bucket'], {'match_count': ('duration', 'count')})
    grouped['bucket_order'] = grouped['bucket'].map(lambda b: np.inf if b == OTHER_BUCKET else float(b))
    return to_records(sort_rows(grouped, ['surface', 'bucket_order']), DISTRIBUTION_COLUMNS)
