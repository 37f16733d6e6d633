from tennis_stats.analytics.engine import AggregationEngine, ReportResult

__all__ = ['AggregationEngine', 'ReportResult']
