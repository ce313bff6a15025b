import logging
from types import SimpleNamespace

from courtside.services.tracking.roster import Roster
from courtside.services.tracking.stats import PlayerStats, aggregate, fold, team_totals

A, B = 'Team A', 'Team B'
ROSTER = Roster((A, B), {1: A, 2: A, 3: A, 11: B, 12: B, 13: B})


def row(seq, event_type, player_id, sub_type=None, result=None):
    return SimpleNamespace(sequence_index=seq, event_type=event_type, player_id=player_id, sub_type=sub_type, result=result)


LOG = [
    row(0, 'shot', 1, '2pt', 'make'),
    row(1, 'shot', 11, '3pt', 'miss'),
    row(2, 'rebound', 2, 'defensive'),
    row(3, 'turnover', 3),
    row(4, 'steal', 12),
    row(5, 'shot', 12, '3pt', 'make'),
    row(6, 'shot', 1, '2pt', 'miss'),
    row(7, 'rebound', 1, 'offensive'),
    row(8, 'shot', 1, '2pt', 'miss'),
    row(9, 'out_of_bounds', 13),
]


def test_scenario_counts_and_left_join():
    stats = aggregate(LOG[:5], ROSTER)
    assert set(stats) == set(ROSTER)
    assert stats[1] == PlayerStats(two_pt_made=1)
    assert stats[2] == PlayerStats(rebounds=1, defensive_rebounds=1)
    assert stats[3] == PlayerStats(turnovers=1)
    assert stats[12] == PlayerStats(steals=1)
    assert stats[11] == PlayerStats(three_pt_missed=1)
    assert stats[13] == PlayerStats()


def test_aggregate_is_idempotent():
    assert aggregate(LOG, ROSTER) == aggregate(LOG, ROSTER)


def test_prefix_fold_matches_full_aggregate():
    full = aggregate(LOG, ROSTER)
    for k in range(len(LOG) + 1):
        assert fold(aggregate(LOG[:k], ROSTER), LOG[k:]) == full


def test_fold_does_not_mutate_input():
    base = aggregate(LOG[:3], ROSTER)
    snapshot = dict(base)
    fold(base, LOG[3:])
    assert base == snapshot


def test_derived_shooting_numbers():
    line = aggregate(LOG, ROSTER)[1]
    assert line.field_goals_made == 1
    assert line.field_goals_attempted == 3
    assert line.points == 2
    assert line.field_goal_pct == 0.333
    assert line.three_pt_pct is None
    assert line.rebounds == 1
    assert line.offensive_rebounds == 1
    assert line.to_dict()['points'] == 2


def test_team_totals_sum_members():
    stats = aggregate(LOG, ROSTER)
    totals = team_totals(stats, ROSTER)
    assert totals[A].points == 2
    assert totals[B].points == 3
    assert totals[A].rebounds == 2
    assert totals[B].steals == 1
    assert totals[A] + totals[B] == sum(stats.values(), PlayerStats())


def test_orphan_rebound_is_flagged_not_fatal(caplog):
    log = [row(0, 'turnover', 1), row(1, 'rebound', 11, 'defensive')]
    with caplog.at_level(logging.WARNING, logger='courtside.services.tracking.stats'):
        stats = aggregate(log, ROSTER)
    assert stats[11].rebounds == 1
    assert any('without a pending miss' in r.getMessage() for r in caplog.records)


def test_unknown_shapes_are_skipped(caplog):
    log = [row(0, 'dunk', 1), row(1, 'steal', 99)]
    with caplog.at_level(logging.WARNING, logger='courtside.services.tracking.stats'):
        stats = aggregate(log, ROSTER)
    assert stats[1] == PlayerStats()
    assert stats[99].steals == 1
    assert len(caplog.records) == 2
