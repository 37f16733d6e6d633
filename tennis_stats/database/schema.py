"""
Tennis Stats Database Schema

This file defines the tables used by the dataset generator and the reports.
It provides information about tables, their columns, and relationships.
"""

from typing import Dict, List

from sqlalchemy import Column, DateTime, ForeignKey, Integer, MetaData, String, Table

metadata = MetaData()

PLAYERS = Table(
    'players', metadata,
    Column('id', Integer, primary_key=True, autoincrement=False, comment="Primary key, assigned at generation"),
    Column('name', String(255), nullable=False, comment="Player's full name"),
    Column('rank', Integer, nullable=False, comment="Ranking position, distinct per player"),
    Column('country', String(100), nullable=False, comment="Country of the player"),
    Column('age', Integer, nullable=False, comment="Player's age"),
    Column('hand', String(5), nullable=False, comment="Playing hand (Left or Right)"),
    Column('height', Integer, nullable=False, comment="Height in cm"),
    Column('grand_slams', Integer, nullable=False, default=0, comment="Grand Slam titles won"),
    comment="Player information and attributes",
)

TOURNAMENTS = Table(
    'tournaments', metadata,
    Column('id', Integer, primary_key=True, autoincrement=False, comment="Primary key, assigned at generation"),
    Column('name', String(255), nullable=False, comment="Name of the tournament"),
    Column('location', String(255), nullable=False, comment="City and country of the venue"),
    Column('category', String(50), nullable=False, comment="Tournament category (Grand Slam, Masters 1000, ...)"),
    Column('surface', String(50), nullable=False, comment="Playing surface (Hard, Clay, Grass, Carpet, Indoor)"),
    Column('start_date', DateTime, nullable=False, comment="First day of the tournament"),
    Column('end_date', DateTime, nullable=False, comment="Last day of the tournament"),
    Column('prize', Integer, nullable=False, comment="Prize money"),
    comment="Tournaments and their playing conditions",
)

TOURNAMENT_PLAYERS = Table(
    'tournament_players', metadata,
    Column('tournament_id', Integer, ForeignKey('tournaments.id'), primary_key=True,
           comment="Foreign key referencing tournaments.id"),
    Column('player_id', Integer, ForeignKey('players.id'), primary_key=True,
           comment="Foreign key referencing players.id"),
    comment="Tournament rosters, independent of who actually played matches",
)

MATCHES = Table(
    'matches', metadata,
    Column('id', Integer, primary_key=True, comment="Primary key, auto-incremented"),
    Column('tournament_id', Integer, ForeignKey('tournaments.id'), nullable=False,
           comment="Foreign key referencing tournaments.id"),
    Column('player1_id', Integer, ForeignKey('players.id'), nullable=False, comment="ID of the first player"),
    Column('player2_id', Integer, ForeignKey('players.id'), nullable=False, comment="ID of the second player"),
    Column('winner_id', Integer, ForeignKey('players.id'), nullable=False,
           comment="ID of match winner, one of player1_id or player2_id"),
    Column('round', String(50), nullable=False, comment="Tournament round"),
    Column('score', String(50), comment="Match score from player1's perspective"),
    Column('date', DateTime, nullable=False, comment="Date the match was played"),
    Column('duration', Integer, comment="Match duration in minutes"),
    Column('aces_player1', Integer, default=0, comment="Player 1's aces count"),
    Column('aces_player2', Integer, default=0, comment="Player 2's aces count"),
    Column('double_faults_player1', Integer, default=0, comment="Player 1's double faults count"),
    Column('double_faults_player2', Integer, default=0, comment="Player 2's double faults count"),
    Column('first_serve_percentage_player1', Integer, default=0, comment="Player 1's first serve percentage"),
    Column('first_serve_percentage_player2', Integer, default=0, comment="Player 2's first serve percentage"),
    Column('break_points_converted_player1', Integer, default=0, comment="Player 1's break points converted"),
    Column('break_points_converted_player2', Integer, default=0, comment="Player 2's break points converted"),
    comment="Generated tennis matches",
)

# Children first, so deletes never violate a foreign key
TRUNCATE_ORDER = ['matches', 'tournament_players', 'tournaments', 'players']

# Define relationships
RELATIONSHIPS = [
    {"from_table": "matches", "from_column": "tournament_id", "to_table": "tournaments", "to_column": "id", "type": "Foreign Key"},
    {"from_table": "matches", "from_column": "player1_id", "to_table": "players", "to_column": "id", "type": "Foreign Key"},
    {"from_table": "matches", "from_column": "player2_id", "to_table": "players", "to_column": "id", "type": "Foreign Key"},
    {"from_table": "matches", "from_column": "winner_id", "to_table": "players", "to_column": "id", "type": "Foreign Key"},
    {"from_table": "tournament_players", "from_column": "tournament_id", "to_table": "tournaments", "to_column": "id", "type": "Foreign Key"},
    {"from_table": "tournament_players", "from_column": "player_id", "to_table": "players", "to_column": "id", "type": "Foreign Key"},
]


def get_table(name: str) -> Table:
    """Look up a table definition by name"""
    try:
        return metadata.tables[name]
    except KeyError:
        raise ValueError(f"Unknown table: {name}") from None


def get_schema_info() -> Dict:
    """
    Returns a dictionary containing database schema information
    for easy programmatic access
    """
    tables: List[Dict] = []
    for table in metadata.sorted_tables:
        tables.append({
            "name": table.name,
            "description": table.comment,
            "columns": [
                {"name": column.name, "type": str(column.type), "description": column.comment}
                for column in table.columns
            ],
        })
    return {"tables": tables, "relationships": RELATIONSHIPS}


def print_schema_summary() -> None:
    """
    Prints each table with its key and nullability flags, foreign key targets
    and the order tables are cleared in before a regeneration
    """
    print(f"Tennis Stats Schema ({len(metadata.tables)} tables)")
    print("=" * 50)

    for table in metadata.sorted_tables:
        primary_key = ', '.join(column.name for column in table.primary_key.columns)
        print(f"\n{table.name} [primary key: {primary_key}]")
        print(f"  {table.comment}")

        for column in table.columns:
            flags = []
            if column.primary_key:
                flags.append("PK")
            if not column.nullable and not column.primary_key:
                flags.append("NOT NULL")
            for foreign_key in column.foreign_keys:
                flags.append(f"-> {foreign_key.target_fullname}")
            print(f"    {column.name:<32} {str(column.type):<14} {' '.join(flags)}")

    print(f"\nTruncate order: {' -> '.join(TRUNCATE_ORDER)}")


if __name__ == "__main__":
    print_schema_summary()
