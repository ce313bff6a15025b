"""Per-player and per-team statistics folded from the event log.

Nothing here is stored: every tally is recomputed from the ordered events,
so the numbers cannot drift from the log. Folding is order-preserving and
incremental, ``fold(aggregate(log[:k]), log[k:])`` equals ``aggregate(log)``.
"""
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Iterable, Mapping, Optional

from .events import OUT_OF_BOUNDS, REBOUND, SHOT, STEAL, TURNOVER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerStats:
    two_pt_made: int = 0
    two_pt_missed: int = 0
    three_pt_made: int = 0
    three_pt_missed: int = 0
    rebounds: int = 0
    offensive_rebounds: int = 0
    defensive_rebounds: int = 0
    turnovers: int = 0
    steals: int = 0

    def __add__(self, other: 'PlayerStats') -> 'PlayerStats':
        return PlayerStats(**{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)})

    @property
    def field_goals_made(self) -> int:
        return self.two_pt_made + self.three_pt_made

    @property
    def field_goals_attempted(self) -> int:
        return self.field_goals_made + self.two_pt_missed + self.three_pt_missed

    @property
    def points(self) -> int:
        return 2 * self.two_pt_made + 3 * self.three_pt_made

    @property
    def field_goal_pct(self) -> Optional[float]:
        if not self.field_goals_attempted:
            return None
        return round(self.field_goals_made / self.field_goals_attempted, 3)

    @property
    def three_pt_pct(self) -> Optional[float]:
        attempts = self.three_pt_made + self.three_pt_missed
        if not attempts:
            return None
        return round(self.three_pt_made / attempts, 3)

    def to_dict(self) -> Dict[str, Any]:
        payload = {f.name: getattr(self, f.name) for f in fields(self)}
        payload.update({
            'points': self.points,
            'field_goals_made': self.field_goals_made,
            'field_goals_attempted': self.field_goals_attempted,
            'field_goal_pct': self.field_goal_pct,
            'three_pt_pct': self.three_pt_pct,
        })
        return payload


ZERO = PlayerStats()

# (event_type, sub_type, result) -> counters bumped for the actor
_COUNTERS = {
    (SHOT, '2pt', 'make'): ('two_pt_made',),
    (SHOT, '2pt', 'miss'): ('two_pt_missed',),
    (SHOT, '3pt', 'make'): ('three_pt_made',),
    (SHOT, '3pt', 'miss'): ('three_pt_missed',),
    (REBOUND, 'offensive', None): ('rebounds', 'offensive_rebounds'),
    (REBOUND, 'defensive', None): ('rebounds', 'defensive_rebounds'),
    (REBOUND, None, None): ('rebounds',),
    (TURNOVER, None, None): ('turnovers',),
    (STEAL, None, None): ('steals',),
    (OUT_OF_BOUNDS, None, None): (),
}


def _bump(stats: PlayerStats, counters) -> PlayerStats:
    return replace(stats, **{name: getattr(stats, name) + 1 for name in counters})


def fold(stats: Mapping[int, PlayerStats], events: Iterable[Any],
         roster: Optional[Mapping[int, str]] = None) -> Dict[int, PlayerStats]:
    """Fold ``events`` into a copy of ``stats``.

    Events are any objects exposing ``event_type``, ``sub_type``, ``result``
    and ``player_id`` (stored rows or plain records). Unknown shapes and
    rebounds without a preceding miss are logged and counted where possible,
    never raised, so a damaged log can still be read.
    """
    folded = dict(stats)
    if roster is not None:
        for player_id in roster:
            folded.setdefault(player_id, ZERO)

    # None until the slice shows whether a miss is outstanding; a slice may start on a rebound
    awaiting_resolution = None
    for event in events:
        key = (event.event_type, event.sub_type, event.result)
        seq = getattr(event, 'sequence_index', None)
        counters = _COUNTERS.get(key)
        if counters is None:
            logger.warning(f'[stats] unexpected event shape {key} seq={seq}')
            continue

        if event.event_type in (REBOUND, OUT_OF_BOUNDS):
            if awaiting_resolution is False:
                logger.warning(f'[stats] {event.event_type} without a pending miss seq={seq}')
        elif awaiting_resolution:
            logger.warning(f'[stats] miss left unresolved before seq={seq}')
        awaiting_resolution = event.event_type == SHOT and event.result == 'miss'

        if roster is not None and event.player_id not in roster:
            logger.warning(f'[stats] player {event.player_id} is not on the roster')
        folded[event.player_id] = _bump(folded.get(event.player_id, ZERO), counters)
    return folded


def aggregate(events: Iterable[Any], roster: Optional[Mapping[int, str]] = None) -> Dict[int, PlayerStats]:
    """Per-player stats for a full log; roster players without events get zeros."""
    return fold({}, events, roster)


def team_totals(stats: Mapping[int, PlayerStats], roster: Mapping[int, str]) -> Dict[str, PlayerStats]:
    teams = getattr(roster, 'teams', None) or tuple(dict.fromkeys(roster.values()))
    totals = {team: ZERO for team in teams}
    for player_id, line in stats.items():
        team = roster.get(player_id)
        if team is None:
            continue
        totals[team] = totals.get(team, ZERO) + line
    return totals
