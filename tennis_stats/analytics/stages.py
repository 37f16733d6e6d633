"""
Composable pipeline stages for the reports.

Each stage takes a DataFrame and returns a new one without touching its
input, so stages can be chained freely and reused across reports.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from tennis_stats.models import ROLES

OTHER_BUCKET = 'other'


def round_half_away(value: float, ndigits: int = 0) -> float:
    """
    Round with ties going away from zero (2.5 -> 3, -2.5 -> -3).

    The float's shortest repr is rounded, so 0.15 rounds to 0.2 rather than
    following its binary expansion.
    """
    if value is None or pd.isna(value):
        return value
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def round_series(series: pd.Series, ndigits: int = 0) -> pd.Series:
    """Apply round_half_away element-wise; ndigits=0 yields integers"""
    rounded = series.map(lambda v: round_half_away(v, ndigits))
    if ndigits == 0:
        return rounded.astype('int64')
    return rounded.astype('float64')


def round_columns(df: pd.DataFrame, digits: Mapping[str, int]) -> pd.DataFrame:
    """Round several columns, column -> number of decimals"""
    result = df.copy()
    for column, ndigits in digits.items():
        result[column] = round_series(result[column], ndigits)
    return result


def join(left: pd.DataFrame, right: pd.DataFrame, on: str, how: str = 'inner') -> pd.DataFrame:
    """Foreign key lookup on a shared key column, inner joins drop unmatched rows"""
    return left.merge(right, on=on, how=how, suffixes=('', '_right'))


def role_flatten(matches: pd.DataFrame, carry: Sequence[str] = (),
                 role_fields: Sequence[str] = ()) -> pd.DataFrame:
    """
    Turn each match into one participant record per role.

    For every role the output holds player_id, is_winner, the carried
    columns and each role field taken from its per-role column (e.g. aces
    from aces_player1 for player1). Both role projections are stacked
    into one frame.
    """
    projections = []
    for role in ROLES:
        projection = pd.DataFrame({
            'player_id': matches[f'{role}_id'].to_numpy(),
            'is_winner': (matches[f'{role}_id'] == matches['winner_id']).to_numpy(dtype=bool),
        })
        for column in carry:
            projection[column] = matches[column].to_numpy()
        for name in role_fields:
            projection[name] = matches[f'{name}_{role}'].to_numpy()
        projections.append(projection)
    return pd.concat(projections, ignore_index=True)


Aggregation = Tuple[str, str]


def group_aggregate(df: pd.DataFrame, keys: Union[str, List[str]],
                    aggregations: Mapping[str, Aggregation]) -> pd.DataFrame:
    """
    Group by keys and compute named aggregations.

    Args:
        df: Input frame
        keys: Column or columns to group by
        aggregations: Output column -> (input column, function), where
            function is one of sum, mean, min, max, count or size

    Returns:
        One row per group with the keys as regular columns
    """
    keys = [keys] if isinstance(keys, str) else list(keys)
    if df.empty:
        return pd.DataFrame(columns=keys + list(aggregations))
    return df.groupby(keys, as_index=False, sort=False).agg(**dict(aggregations))


def threshold_filter(df: pd.DataFrame, column: str, minimum: float) -> pd.DataFrame:
    """Keep rows whose column is at least minimum"""
    return df[df[column] >= minimum].reset_index(drop=True)


def compute_ratio(df: pd.DataFrame, output: str, numerator: str, denominator: str,
                  scale: float = 1.0, ndigits: Optional[int] = 1) -> pd.DataFrame:
    """Add output = numerator / denominator * scale, rounded half away from zero"""
    result = df.copy()
    ratio = result[numerator].astype('float64') / result[denominator].astype('float64') * scale
    result[output] = round_series(ratio, ndigits) if ndigits is not None else ratio
    return result


def bucketize(df: pd.DataFrame, column: str, boundaries: Sequence[float],
              output: str = 'bucket', default: str = OTHER_BUCKET) -> pd.DataFrame:
    """
    Assign each row to the [lower, upper) range its value falls in.

    Buckets are labelled by their lower boundary; values outside every
    range get the default label.
    """
    result = df.copy()
    lower_bounds = list(boundaries[:-1])
    positions = np.searchsorted(np.asarray(boundaries, dtype='float64'),
                                result[column].to_numpy(dtype='float64'), side='right') - 1
    in_range = (positions >= 0) & (positions < len(lower_bounds))
    result[output] = [lower_bounds[pos] if ok else default for pos, ok in zip(positions, in_range)]
    return result


def sort_rows(df: pd.DataFrame, by: Sequence[str], ascending: Union[bool, Sequence[bool]] = True) -> pd.DataFrame:
    """Stable sort, list extra columns in by to break ties deterministically"""
    if df.empty:
        return df.reset_index(drop=True)
    return df.sort_values(list(by), ascending=ascending, kind='mergesort').reset_index(drop=True)


def limit_rows(df: pd.DataFrame, limit: Optional[int]) -> pd.DataFrame:
    """Keep the first limit rows, None keeps everything"""
    if limit is None:
        return df
    return df.head(limit).reset_index(drop=True)


def to_records(df: pd.DataFrame, columns: Dict[str, str]) -> List[dict]:
    """Rename columns to their response names and convert to plain dicts"""
    if df.empty:
        return []
    return df[list(columns)].rename(columns=columns).to_dict('records')
