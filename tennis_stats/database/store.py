"""
Store access for the tennis stats tables.

Wraps a SQLAlchemy engine behind the small set of operations the generator
and the reports need: table creation, truncation, bulk inserts, index
creation and projected reads into pandas DataFrames. Every SQLAlchemy error
surfaces as StoreUnavailableError.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pandas as pd
from psycopg2.extras import execute_values
from sqlalchemy import create_engine, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from tennis_stats.config import CONNECT_TIMEOUT, DB_PAGE_SIZE, SQLITE_BUSY_TIMEOUT, mask_database_url
from tennis_stats.database.schema import TRUNCATE_ORDER, get_table, metadata
from tennis_stats.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Translate SQLAlchemy and pandas read_sql failures into StoreUnavailableError"""
    try:
        yield
    except (SQLAlchemyError, pd.errors.DatabaseError) as e:
        logger.error(f"Error {action}: {str(e)}")
        raise StoreUnavailableError(f"Error {action}: {str(e)}") from e


class Store:
    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "Store":
        """Create a store with connection timeouts suited to the backend"""
        if database_url.startswith('sqlite'):
            connect_args = {'timeout': SQLITE_BUSY_TIMEOUT}
        else:
            connect_args = {'connect_timeout': CONNECT_TIMEOUT}
        with store_errors("creating database engine"):
            engine = create_engine(database_url, connect_args=connect_args)
        logger.debug(f"Using database URL: {mask_database_url(database_url)}")
        return cls(engine)

    @property
    def url(self) -> str:
        """Full connection URL, used to hand the store over to worker processes"""
        return self.engine.url.render_as_string(hide_password=False)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def dispose(self) -> None:
        self.engine.dispose()

    def create_tables(self) -> None:
        """Create all tables that don't exist yet"""
        with store_errors("creating tables"):
            metadata.create_all(self.engine)
        logger.info("Tables created successfully")

    def truncate(self, tables: Sequence[str] = TRUNCATE_ORDER) -> None:
        """Remove every row from the given tables"""
        for name in tables:
            get_table(name)
        with store_errors("truncating tables"):
            with self.engine.begin() as conn:
                if self.dialect == 'postgresql':
                    conn.execute(text(f"TRUNCATE TABLE {', '.join(tables)} RESTART IDENTITY CASCADE"))
                else:
                    for name in tables:
                        conn.execute(get_table(name).delete())
        logger.info(f"Truncated tables: {', '.join(tables)}")

    def bulk_insert(self, table_name: str, records: List[Dict[str, Any]]) -> int:
        """
        Insert a batch of records in a single transaction.

        Args:
            table_name: Target table
            records: Rows as dictionaries sharing the same keys

        Returns:
            Number of rows inserted
        """
        if not records:
            return 0
        table = get_table(table_name)
        with store_errors(f"inserting into {table_name}"):
            with self.engine.begin() as conn:
                if self.engine.dialect.driver == 'psycopg2':
                    # Fast bulk insert using execute_values
                    columns = list(records[0].keys())
                    data = [tuple(record[col] for col in columns) for record in records]
                    cursor = conn.connection.cursor()
                    try:
                        execute_values(
                            cursor,
                            f"INSERT INTO {table.name} ({', '.join(columns)}) VALUES %s",
                            data,
                            page_size=DB_PAGE_SIZE
                        )
                    finally:
                        cursor.close()
                else:
                    conn.execute(table.insert(), records)
        return len(records)

    def create_index(self, table_name: str, columns: Sequence[str], name: Optional[str] = None) -> str:
        """Create an index on one or more columns if it doesn't exist"""
        table = get_table(table_name)
        missing = [col for col in columns if col not in table.c]
        if missing:
            raise ValueError(f"Unknown columns for {table_name}: {missing}")
        index_name = name or f"ix_{table_name}_{'_'.join(columns)}"
        with store_errors(f"creating index {index_name}"):
            with self.engine.begin() as conn:
                conn.execute(text(
                    f"CREATE INDEX IF NOT EXISTS {index_name} ON {table_name} ({', '.join(columns)})"
                ))
        return index_name

    def read_table(self, table_name: str, columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """Load the projected columns of a table into a DataFrame"""
        table = get_table(table_name)
        selected = [table.c[col] for col in columns] if columns else list(table.c)
        with store_errors(f"reading {table_name}"):
            with self.engine.connect() as conn:
                return pd.read_sql(select(*selected), conn)

    def group_count(self, table_name: str, key: str, output: str = 'count') -> pd.DataFrame:
        """Count rows per distinct value of key"""
        table = get_table(table_name)
        query = select(table.c[key], func.count().label(output)).group_by(table.c[key])
        with store_errors(f"counting {table_name} by {key}"):
            with self.engine.connect() as conn:
                return pd.read_sql(query, conn)

    def count_rows(self, table_name: str) -> int:
        table = get_table(table_name)
        with store_errors(f"counting {table_name}"):
            with self.engine.connect() as conn:
                return conn.execute(select(func.count()).select_from(table)).scalar_one()
