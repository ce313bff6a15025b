"""Possession state machine.

The whole state of a game relevant to possession is the team holding the
ball plus, between a missed shot and its rebound (or out-of-bounds), the
pending miss. ``apply`` never mutates its input; it returns the next state and
the events to append, or raises without side effects.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple

from .errors import InvalidTransition, MalformedEvent
from .events import (
    OUT_OF_BOUNDS, REBOUND, SHOT, STEAL, TURNOVER, ValidatedEvent,
)
from .roster import Roster

logger = logging.getLogger(__name__)

RETAIN = 'retain'
OPPONENT = 'opponent'
OUT_OF_BOUNDS_POLICIES = (RETAIN, OPPONENT)

# How a derived event points at the event it resolves
LINK_PENDING_MISS = 'pending_miss'
LINK_PREVIOUS = 'previous'


@dataclass(frozen=True)
class PendingMiss:
    shooter_id: int
    shooter_team: str
    event_id: Optional[int] = None


@dataclass(frozen=True)
class PossessionState:
    possession: str
    pending_miss: Optional[PendingMiss] = None


@dataclass(frozen=True)
class DerivedEvent:
    event_type: str
    player_id: int
    team: str
    game_clock_seconds: int
    resulting_possession: str
    sub_type: Optional[str] = None
    result: Optional[str] = None
    link: Optional[str] = None


@dataclass(frozen=True)
class Transition:
    state: PossessionState
    events: Tuple[DerivedEvent, ...]


def _rebound(state, player_id, team, clock, claimed, link):
    shooter_team = state.pending_miss.shooter_team
    sub_type = 'offensive' if team == shooter_team else 'defensive'
    if claimed is not None and claimed != sub_type:
        raise InvalidTransition(
            f'Rebound by {team} after a {shooter_team} miss is {sub_type}, not {claimed}',
            derived_sub_type=sub_type,
        )
    next_possession = team if sub_type == 'defensive' else state.possession
    rebound = DerivedEvent(
        event_type=REBOUND,
        player_id=player_id,
        team=team,
        game_clock_seconds=clock,
        resulting_possession=next_possession,
        sub_type=sub_type,
        link=link,
    )
    return Transition(PossessionState(next_possession), (rebound,))


def apply(state: PossessionState, event: ValidatedEvent, roster: Roster,
          out_of_bounds_policy: str = RETAIN) -> Transition:
    """Compute the possession after ``event`` and the events to record."""
    pending = state.pending_miss
    clock = event.game_clock_seconds

    if event.event_type in (REBOUND, OUT_OF_BOUNDS):
        if pending is None:
            raise InvalidTransition(f'No missed shot is awaiting a {event.event_type.replace("_", "-")}')
        if event.event_type == REBOUND:
            return _rebound(state, event.player_id, event.team, clock, event.sub_type, LINK_PENDING_MISS)
        if out_of_bounds_policy not in OUT_OF_BOUNDS_POLICIES:
            raise ValueError(f'Unknown out-of-bounds policy {out_of_bounds_policy!r}')
        if out_of_bounds_policy == OPPONENT:
            next_possession = roster.opponent_of(pending.shooter_team)
        else:
            next_possession = state.possession
        oob = DerivedEvent(OUT_OF_BOUNDS, event.player_id, event.team, clock, next_possession, link=LINK_PENDING_MISS)
        return Transition(PossessionState(next_possession), (oob,))

    if pending is not None:
        raise InvalidTransition(
            'A missed shot is awaiting a rebound or out-of-bounds',
            pending_shooter_id=pending.shooter_id,
        )

    if event.event_type == SHOT:
        if event.result == 'make':
            next_possession = roster.opponent_of(event.team)
            made = DerivedEvent(SHOT, event.player_id, event.team, clock, next_possession, event.sub_type, 'make')
            return Transition(PossessionState(next_possession), (made,))

        # The miss keeps the current possession as a placeholder until resolved
        miss = DerivedEvent(SHOT, event.player_id, event.team, clock, state.possession, event.sub_type, 'miss')
        waiting = PossessionState(state.possession, PendingMiss(event.player_id, event.team))
        if event.rebounder_id is None:
            return Transition(waiting, (miss,))
        rebounder_team = roster[event.rebounder_id]
        resolved = _rebound(waiting, event.rebounder_id, rebounder_team, clock, None, LINK_PREVIOUS)
        return Transition(resolved.state, (miss,) + resolved.events)

    if event.event_type == TURNOVER:
        if event.stealer_id is None:
            next_possession = roster.opponent_of(event.team)
            turnover = DerivedEvent(TURNOVER, event.player_id, event.team, clock, next_possession)
            return Transition(PossessionState(next_possession), (turnover,))
        stealer_team = roster[event.stealer_id]
        if stealer_team == event.team:
            raise InvalidTransition(
                f'Stealer {event.stealer_id} plays for {stealer_team}, the same team that turned it over',
                stealer_id=event.stealer_id,
            )
        turnover = DerivedEvent(TURNOVER, event.player_id, event.team, clock, stealer_team)
        steal = DerivedEvent(STEAL, event.stealer_id, stealer_team, clock, stealer_team, link=LINK_PREVIOUS)
        return Transition(PossessionState(stealer_team), (turnover, steal))

    if event.event_type == STEAL:
        steal = DerivedEvent(STEAL, event.player_id, event.team, clock, event.team)
        return Transition(PossessionState(event.team), (steal,))

    raise MalformedEvent(f'Unhandled event_type {event.event_type!r}')


@dataclass
class ReplayReport:
    possession: str
    pending_miss: Optional[PendingMiss]
    replayed: int = 0
    issues: List[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


def replay(initial_possession: str, events: Iterable[Any], roster: Roster,
           out_of_bounds_policy: str = RETAIN) -> ReplayReport:
    """Re-run the machine over stored events in log order.

    Each stored row is replayed on its own; a turnover followed by its
    linked steal lands on the same possession as the atomic pair. Rows that
    the machine rejects, or whose stored ``resulting_possession`` differs from
    the replayed value, are reported and the stored value is trusted.
    """
    state = PossessionState(initial_possession)
    report = ReplayReport(possession=initial_possession, pending_miss=None)
    for row in events:
        report.replayed += 1
        if row.player_id not in roster:
            report.issues.append({'sequence_index': row.sequence_index, 'message': f'player {row.player_id} not on roster'})
            state = PossessionState(row.resulting_possession)
            continue
        step = ValidatedEvent(
            event_type=row.event_type,
            player_id=row.player_id,
            team=roster[row.player_id],
            game_clock_seconds=row.game_clock_seconds,
            sub_type=row.sub_type,
            result=row.result,
        )
        try:
            transition = apply(state, step, roster, out_of_bounds_policy)
        except InvalidTransition as exc:
            logger.warning(f'[replay] seq={row.sequence_index} rejected: {exc.message}')
            report.issues.append({'sequence_index': row.sequence_index, 'message': exc.message})
            state = PossessionState(row.resulting_possession)
            continue
        expected = transition.events[-1].resulting_possession
        if expected != row.resulting_possession:
            report.issues.append({
                'sequence_index': row.sequence_index,
                'message': f'stored possession {row.resulting_possession} but replay gives {expected}',
            })
        state = transition.state
        if state.pending_miss is not None:
            state = PossessionState(state.possession, PendingMiss(row.player_id, step.team, row.id))
    report.possession = state.possession
    report.pending_miss = state.pending_miss
    return report
