"""
Tennis Stats Aggregation Engine

Exposes the fixed set of statistical reports computed from the generated
corpus:
1. Player win percentages by surface
2. Match duration statistics by surface
3. Player performance statistics
4. Tournament statistics
5. Matches by year and surface
6. Match duration distribution by surface

The engine is read-only and holds nothing but a store handle, so a single
instance can serve concurrent callers. Each call is timed and returned as a
ReportResult.
"""

import argparse
import functools
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tennis_stats.analytics import reports
from tennis_stats.config import (
    DURATION_BUCKETS,
    PERFORMANCE_LIMIT,
    PERFORMANCE_MIN_MATCHES,
    TOURNAMENT_LIMIT,
    WIN_PERCENTAGE_LIMIT,
    WIN_PERCENTAGE_MIN_MATCHES,
    configure_logging,
    get_database_url,
)
from tennis_stats.database.store import Store
from tennis_stats.exceptions import InvalidParameterError, QueryExecutionError, StoreUnavailableError

logger = logging.getLogger(__name__)


class ReportResult(BaseModel):
    """Report rows plus timing, serialised as {stats, executionTimeMs, count?}"""
    model_config = ConfigDict(populate_by_name=True)

    stats: List[Dict[str, Any]]
    execution_time_ms: float = Field(alias='executionTimeMs')
    count: Optional[int] = None

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ReportParameters(BaseModel):
    limit: Optional[int] = Field(default=None, ge=0)
    min_matches: Optional[int] = Field(default=None, ge=0)
    boundaries: Optional[List[int]] = None

    @field_validator('boundaries')
    @classmethod
    def ascending_boundaries(cls, v):
        if v is None:
            return v
        if len(v) < 2:
            raise ValueError("at least two boundaries are required")
        if any(lower >= upper for lower, upper in zip(v, v[1:])):
            raise ValueError("boundaries must be strictly ascending")
        return v


def validate_parameters(**params: Any) -> ReportParameters:
    """Reject malformed or negative parameters before any store access"""
    try:
        return ReportParameters(**params)
    except ValidationError as e:
        error = e.errors()[0]
        parameter = str(error['loc'][0]) if error['loc'] else 'parameters'
        raise InvalidParameterError(parameter, params.get(parameter), error['msg']) from None


def timed_report(report_name: str, counted: bool = True) -> Callable:
    """
    Time a report method and wrap its rows in a ReportResult.

    Store failures are re-raised as QueryExecutionError tagged with the
    report name.
    """
    def decorator(func: Callable[..., List[dict]]) -> Callable[..., ReportResult]:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs) -> ReportResult:
            start_time = time.time()
            try:
                stats = func(self, *args, **kwargs)
            except StoreUnavailableError as e:
                logger.error(f"Error getting {report_name}: {str(e)}")
                raise QueryExecutionError(report_name, str(e)) from e
            execution_time_ms = (time.time() - start_time) * 1000

            logger.info(f"{report_name}: {len(stats)} rows in {execution_time_ms:.2f} ms")
            return ReportResult(
                stats=stats,
                execution_time_ms=execution_time_ms,
                count=len(stats) if counted else None,
            )
        return wrapper
    return decorator


def _or_default(value: Optional[int], default: int) -> int:
    """Missing thresholds fall back to the report default"""
    return default if value is None else value


class AggregationEngine:
    def __init__(self, store: Store):
        self.store = store

    @timed_report('player_win_percentage_by_surface')
    def player_win_percentage_by_surface(self, limit: Optional[int] = WIN_PERCENTAGE_LIMIT,
                                         min_matches: int = WIN_PERCENTAGE_MIN_MATCHES) -> List[dict]:
        """Players ranked by win percentage on each surface"""
        params = validate_parameters(limit=limit, min_matches=min_matches)
        min_matches = _or_default(params.min_matches, WIN_PERCENTAGE_MIN_MATCHES)
        return reports.player_win_percentage_by_surface(self.store, params.limit, min_matches)

    @timed_report('match_duration_stats_by_surface', counted=False)
    def match_duration_stats_by_surface(self) -> List[dict]:
        """Average, minimum and maximum match duration per surface"""
        return reports.match_duration_stats_by_surface(self.store)

    @timed_report('player_performance_stats')
    def player_performance_stats(self, limit: Optional[int] = PERFORMANCE_LIMIT,
                                 min_matches: int = PERFORMANCE_MIN_MATCHES) -> List[dict]:
        """Players ranked by overall win percentage, with per-match serve stats"""
        params = validate_parameters(limit=limit, min_matches=min_matches)
        min_matches = _or_default(params.min_matches, PERFORMANCE_MIN_MATCHES)
        return reports.player_performance_stats(self.store, params.limit, min_matches)

    @timed_report('tournament_statistics')
    def tournament_statistics(self, limit: Optional[int] = TOURNAMENT_LIMIT) -> List[dict]:
        """Tournaments ranked by number of matches; limit=None returns all of them"""
        params = validate_parameters(limit=limit)
        return reports.tournament_statistics(self.store, params.limit)

    @timed_report('matches_by_year_and_surface', counted=False)
    def matches_by_year_and_surface(self) -> List[dict]:
        return reports.matches_by_year_and_surface(self.store)

    @timed_report('match_duration_distribution')
    def match_duration_distribution(self, boundaries: Sequence[int] = DURATION_BUCKETS) -> List[dict]:
        params = validate_parameters(boundaries=list(boundaries))
        return reports.match_duration_distribution(self.store, params.boundaries)


# CLI report names, matching the HTTP routes
REPORTS = {
    'player-win-percentages': 'player_win_percentage_by_surface',
    'match-duration-by-surface': 'match_duration_stats_by_surface',
    'player-performance': 'player_performance_stats',
    'tournament-stats': 'tournament_statistics',
    'matches-by-year-surface': 'matches_by_year_and_surface',
    'match-duration-distribution': 'match_duration_distribution',
}
LIMITED_REPORTS = {'player-win-percentages', 'player-performance', 'tournament-stats'}
THRESHOLD_REPORTS = {'player-win-percentages', 'player-performance'}


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run a tennis statistics report")
    parser.add_argument("report", choices=sorted(REPORTS), help="Report to run")
    parser.add_argument("--limit", type=int, help="Maximum number of rows")
    parser.add_argument("--min-matches", type=int, help="Minimum matches for a player to be included")
    parser.add_argument("--database-url", type=str, help="Database URL, defaults to DATABASE_URL")
    args = parser.parse_args(argv)

    configure_logging()
    store = Store.from_url(get_database_url(args.database_url))
    engine = AggregationEngine(store)

    kwargs: Dict[str, Any] = {}
    if args.limit is not None and args.report in LIMITED_REPORTS:
        kwargs['limit'] = args.limit
    if args.min_matches is not None and args.report in THRESHOLD_REPORTS:
        kwargs['min_matches'] = args.min_matches

    try:
        result = getattr(engine, REPORTS[args.report])(**kwargs)
        print(json.dumps(result.to_response(), indent=2))
    except Exception as e:
        logger.error(f"Error running {args.report}: {str(e)}")
        raise
    finally:
        store.dispose()


if __name__ == "__main__":
    main()
