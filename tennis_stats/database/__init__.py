from tennis_stats.database.indexes import ensure_indexes
from tennis_stats.database.store import Store

__all__ = ['Store', 'ensure_indexes']
