"""
Random record factories for players, tournaments and matches.

All randomness goes through an explicit random.Random and Faker instance so a
seeded run is reproducible.
"""

import random
from datetime import timedelta
from typing import List, Optional, Sequence

from faker import Faker

from tennis_stats.models import Category, Hand, Match, MatchStats, Player, Round, StatPair, Surface, Tournament

ROSTER_SIZES = [16, 32, 64, 128]
BEST_OF_OPTIONS = [3, 5]

# Bounded distributions, inclusive
AGE_RANGE = (18, 40)
HEIGHT_RANGE = (165, 210)
GRAND_SLAMS_RANGE = (0, 24)
PRIZE_RANGE = (50000, 5000000)
TOURNAMENT_LENGTH_DAYS = (7, 14)
DURATION_RANGE = (60, 300)
STAT_RANGES = {
    'aces': (0, 30),
    'double_faults': (0, 15),
    'first_serve_percentage': (40, 85),
    'break_points_converted': (20, 90),
}
DATE_WINDOW = '-2y'


def make_faker(seed: Optional[int] = None) -> Faker:
    """Faker with its own random state, seeded from the OS when seed is None"""
    fake = Faker()
    fake.seed_instance(seed if seed is not None else random.SystemRandom().getrandbits(64))
    return fake


def generate_player_data(index: int, rng: random.Random, fake: Faker) -> Player:
    """Player with id and rank both derived from its position in the run"""
    return Player(
        id=index + 1,
        name=f"{fake.first_name()} {fake.last_name()}",
        rank=index + 1,
        country=fake.country(),
        age=rng.randint(*AGE_RANGE),
        hand=rng.choice(list(Hand)),
        height=rng.randint(*HEIGHT_RANGE),
        grand_slams=rng.randint(*GRAND_SLAMS_RANGE),
    )


def generate_tournament_data(index: int, player_ids: Sequence[int], rng: random.Random, fake: Faker) -> Tournament:
    """
    Tournament with a roster sampled from the player pool.

    The roster is drawn independently of the matches generated later, so it
    does not describe who actually played there.
    """
    start_date = fake.date_time_between(start_date=DATE_WINDOW, end_date='now')
    end_date = start_date + timedelta(days=rng.randint(*TOURNAMENT_LENGTH_DAYS))
    roster_size = min(rng.choice(ROSTER_SIZES), len(player_ids))

    return Tournament(
        id=index + 1,
        name=f"{fake.company()} Open",
        location=f"{fake.city()}, {fake.country()}",
        category=rng.choice(list(Category)),
        surface=rng.choice(list(Surface)),
        start_date=start_date,
        end_date=end_date,
        prize=rng.randint(*PRIZE_RANGE),
        players=rng.sample(list(player_ids), roster_size),
    )


def generate_set_score(rng: random.Random) -> tuple:
    """Games for the set winner and the set loser"""
    winner_games = rng.choice([6, 7])
    if winner_games == 7:
        loser_games = rng.choice([5, 6])
    else:
        loser_games = rng.randint(0, 4)
    return winner_games, loser_games


def generate_score(rng: random.Random, best_of: int, player1_wins: bool) -> str:
    """
    Score string from player1's perspective, e.g. "6-4 3-6 7-6".

    The match winner takes exactly best_of // 2 + 1 sets, including the
    last one; the loser takes anywhere from none to one short of that.
    """
    sets_to_win = best_of // 2 + 1
    loser_sets = rng.randint(0, sets_to_win - 1)
    set_won_by_winner = [True] * (sets_to_win - 1) + [False] * loser_sets
    rng.shuffle(set_won_by_winner)
    set_won_by_winner.append(True)

    sets: List[str] = []
    for winner_took_set in set_won_by_winner:
        set_winner_games, set_loser_games = generate_set_score(rng)
        player1_took_set = winner_took_set == player1_wins
        if player1_took_set:
            sets.append(f"{set_winner_games}-{set_loser_games}")
        else:
            sets.append(f"{set_loser_games}-{set_winner_games}")
    return ' '.join(sets)


def generate_match_data(tournament_ids: Sequence[int], player_ids: Sequence[int],
                        rng: random.Random, fake: Faker) -> Match:
    """Random match between two distinct players of the pool"""
    tournament_id = rng.choice(tournament_ids)
    player1_id, player2_id = rng.sample(player_ids, 2)
    winner_id = rng.choice([player1_id, player2_id])

    stats = MatchStats(**{
        stat: StatPair(player1=rng.randint(low, high), player2=rng.randint(low, high))
        for stat, (low, high) in STAT_RANGES.items()
    })

    return Match(
        tournament_id=tournament_id,
        player1_id=player1_id,
        player2_id=player2_id,
        winner_id=winner_id,
        round=rng.choice(list(Round)),
        score=generate_score(rng, rng.choice(BEST_OF_OPTIONS), winner_id == player1_id),
        date=fake.date_time_between(start_date=DATE_WINDOW, end_date='now'),
        duration=rng.randint(*DURATION_RANGE),
        stats=stats,
    )
