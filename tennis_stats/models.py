"""
Entity shapes shared by the dataset generator and the reports.

Players, tournaments and matches are validated with pydantic on creation and
are immutable afterwards.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Hand(str, Enum):
    LEFT = 'Left'
    RIGHT = 'Right'


class Surface(str, Enum):
    HARD = 'Hard'
    CLAY = 'Clay'
    GRASS = 'Grass'
    CARPET = 'Carpet'
    INDOOR = 'Indoor'


class Category(str, Enum):
    GRAND_SLAM = 'Grand Slam'
    MASTERS_1000 = 'Masters 1000'
    ATP_500 = 'ATP 500'
    ATP_250 = 'ATP 250'
    CHALLENGER = 'Challenger'
    ITF = 'ITF'


class Round(str, Enum):
    QUALIFICATION = 'Qualification'
    FIRST_ROUND = 'First Round'
    SECOND_ROUND = 'Second Round'
    THIRD_ROUND = 'Third Round'
    FOURTH_ROUND = 'Fourth Round'
    QUARTER_FINAL = 'Quarter-final'
    SEMI_FINAL = 'Semi-final'
    FINAL = 'Final'


# Per-match stats recorded for both players, in column order
STAT_FIELDS = ['aces', 'double_faults', 'first_serve_percentage', 'break_points_converted']
ROLES = ['player1', 'player2']


class Player(BaseModel):
    """Pydantic model for player data validation"""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: int
    name: str
    rank: int = Field(ge=1)
    country: str
    age: int = Field(ge=1)
    hand: Hand
    height: int = Field(ge=100)
    grand_slams: int = Field(default=0, ge=0)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()


class Tournament(BaseModel):
    """Pydantic model for tournament data validation"""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: int
    name: str
    location: str
    category: Category
    surface: Surface
    start_date: datetime
    end_date: datetime
    prize: int = Field(ge=0)
    players: List[int] = Field(default_factory=list)

    @field_validator('players')
    @classmethod
    def unique_roster(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("Tournament roster contains duplicate players")
        return v

    @model_validator(mode='after')
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("Tournament end_date precedes start_date")
        return self

    def to_record(self) -> Dict[str, Any]:
        """Row for the tournaments table; the roster is stored separately"""
        return self.model_dump(exclude={'players'})

    def roster_records(self) -> List[Dict[str, int]]:
        return [{'tournament_id': self.id, 'player_id': player_id} for player_id in self.players]


class StatPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    player1: int = Field(default=0, ge=0)
    player2: int = Field(default=0, ge=0)


class MatchStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    aces: StatPair = Field(default_factory=StatPair)
    double_faults: StatPair = Field(default_factory=StatPair)
    first_serve_percentage: StatPair = Field(default_factory=StatPair)
    break_points_converted: StatPair = Field(default_factory=StatPair)


class Match(BaseModel):
    """
    Pydantic model for match data validation.

    A match references both players symmetrically; the winner must be one of
    them and a player cannot face themselves.
    """
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: Optional[int] = None
    tournament_id: int
    player1_id: int
    player2_id: int
    winner_id: int
    round: Round
    score: str
    date: datetime
    duration: int = Field(ge=0)
    stats: MatchStats = Field(default_factory=MatchStats)

    @model_validator(mode='after')
    def check_players(self):
        if self.player1_id == self.player2_id:
            raise ValueError("player1_id and player2_id must differ")
        if self.winner_id not in (self.player1_id, self.player2_id):
            raise ValueError("winner_id must be player1_id or player2_id")
        return self

    def to_record(self) -> Dict[str, Any]:
        """
        Flatten the match into a matches table row.

        Stat pairs become one column per role, e.g. aces_player1.
        """
        record = self.model_dump(exclude={'stats', 'id'})
        if self.id is not None:
            record['id'] = self.id
        for stat in STAT_FIELDS:
            pair = getattr(self.stats, stat)
            for role in ROLES:
                record[f'{stat}_{role}'] = getattr(pair, role)
        return record
