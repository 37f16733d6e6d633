from __future__ import annotations

import pandas as pd
import pytest

from tennis_stats.analytics.stages import (
    OTHER_BUCKET,
    bucketize,
    compute_ratio,
    group_aggregate,
    join,
    limit_rows,
    role_flatten,
    round_half_away,
    sort_rows,
    threshold_filter,
    to_records,
)


@pytest.mark.parametrize(
    "value, ndigits, expected",
    [
        (2.5, 0, 3.0),
        (-2.5, 0, -3.0),
        (89.5, 0, 90.0),
        (12.25, 1, 12.3),
        (0.15, 1, 0.2),
        (200 / 3, 1, 66.7),
        (100.0, 1, 100.0),
    ],
)
def test_round_half_away(value, ndigits, expected):
    assert round_half_away(value, ndigits) == expected


def _matches() -> pd.DataFrame:
    return pd.DataFrame({
        "player1_id": [1, 3],
        "player2_id": [2, 1],
        "winner_id": [1, 3],
        "surface": ["Clay", "Hard"],
        "aces_player1": [10, 4],
        "aces_player2": [2, 6],
    })


def test_role_flatten_emits_one_record_per_participant():
    participants = role_flatten(_matches(), carry=["surface"], role_fields=["aces"])

    assert len(participants) == 4
    rows = set(participants[["player_id", "is_winner", "surface", "aces"]].itertuples(index=False, name=None))
    assert rows == {
        (1, True, "Clay", 10),
        (3, True, "Hard", 4),
        (2, False, "Clay", 2),
        (1, False, "Hard", 6),
    }


def test_group_aggregate_counts_wins_per_player():
    participants = role_flatten(_matches(), carry=["surface"])
    grouped = group_aggregate(participants, "player_id", {
        "total_matches": ("is_winner", "count"),
        "wins": ("is_winner", "sum"),
    }).set_index("player_id")

    assert grouped.loc[1, "total_matches"] == 2
    assert grouped.loc[1, "wins"] == 1
    assert grouped.loc[2, "wins"] == 0


def test_group_aggregate_on_empty_frame_keeps_columns():
    empty = pd.DataFrame(columns=["player_id", "is_winner"])
    grouped = group_aggregate(empty, ["player_id"], {"wins": ("is_winner", "sum")})

    assert grouped.empty
    assert list(grouped.columns) == ["player_id", "wins"]


def test_threshold_filter_keeps_rows_at_the_minimum():
    df = pd.DataFrame({"total_matches": [4, 5, 6]})
    assert threshold_filter(df, "total_matches", 5)["total_matches"].tolist() == [5, 6]


def test_compute_ratio_scales_and_rounds():
    df = pd.DataFrame({"wins": [1, 2, 0], "total_matches": [3, 3, 4]})
    result = compute_ratio(df, "win_percentage", "wins", "total_matches", scale=100, ndigits=1)

    assert result["win_percentage"].tolist() == [33.3, 66.7, 0.0]
    assert "win_percentage" not in df.columns


def test_join_drops_unmatched_rows():
    left = pd.DataFrame({"tournament_id": [1, 2, 9], "duration": [60, 90, 120]})
    right = pd.DataFrame({"tournament_id": [1, 2], "surface": ["Clay", "Grass"]})

    joined = join(left, right, on="tournament_id")
    assert joined["surface"].tolist() == ["Clay", "Grass"]

    left_joined = join(left, right, on="tournament_id", how="left")
    assert len(left_joined) == 3


def test_bucketize_labels_by_lower_bound():
    df = pd.DataFrame({"duration": [0, 89, 90, 150, 359, 360, -5]})
    result = bucketize(df, "duration", [0, 90, 180, 360])

    assert result["bucket"].tolist() == [0, 0, 90, 90, 180, OTHER_BUCKET, OTHER_BUCKET]


def test_sort_rows_breaks_ties_with_secondary_keys():
    df = pd.DataFrame({"win_percentage": [50.0, 75.0, 50.0], "player_id": [9, 4, 2]})
    ranked = sort_rows(df, ["win_percentage", "player_id"], ascending=[False, True])

    assert ranked["player_id"].tolist() == [4, 2, 9]


def test_limit_rows():
    df = pd.DataFrame({"x": range(5)})

    assert len(limit_rows(df, 2)) == 2
    assert limit_rows(df, 0).empty
    assert len(limit_rows(df, None)) == 5


def test_to_records_renames_columns():
    df = pd.DataFrame({"player_id": [1], "win_percentage": [100.0], "unused": ["x"]})

    assert to_records(df, {"player_id": "playerId", "win_percentage": "winPercentage"}) == [
        {"playerId": 1, "winPercentage": 100.0}
    ]
    assert to_records(df.iloc[0:0], {"player_id": "playerId"}) == []
