import threading
import weakref
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from courtside import db
from courtside.models import Event, Game, Player
from .errors import GameNotActive, InvalidGameSetup, InvalidTransition, TrackingError, UnknownPlayerOrGame
from .event_log import EventLog
from .events import SHOT, validate_shape
from .possession import (
    LINK_PENDING_MISS, LINK_PREVIOUS, OUT_OF_BOUNDS_POLICIES, RETAIN,
    PendingMiss, PossessionState, apply, replay,
)
from .stats import PlayerStats, aggregate, team_totals

# One writer per game; different games never share a lock. An entry lives only while a caller holds its lock
_game_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def _game_lock(game_id: int) -> threading.Lock:
    with _locks_guard:
        return _game_locks.setdefault(game_id, threading.Lock())


def _out_of_bounds_policy() -> str:
    policy = current_app.config.get('OUT_OF_BOUNDS_POSSESSION', RETAIN)
    if policy not in OUT_OF_BOUNDS_POLICIES:
        current_app.logger.warning(f"[config] unknown OUT_OF_BOUNDS_POSSESSION={policy!r}, using {RETAIN!r}")
        return RETAIN
    return policy


def _clean_name(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidGameSetup(f'{what} is required')
    return value.strip()


def create_game(team1_name: str, team2_name: str, players: List[Dict[str, Any]],
                initial_possession: Optional[str] = None) -> Game:
    """Create an active game with a fixed roster."""
    team1_name = _clean_name(team1_name, 'team1_name')
    team2_name = _clean_name(team2_name, 'team2_name')
    if team1_name == team2_name:
        raise InvalidGameSetup('The two team names must differ')
    teams = (team1_name, team2_name)

    possession = initial_possession or team1_name
    if possession not in teams:
        raise InvalidGameSetup(f'initial_possession must be {team1_name!r} or {team2_name!r}', value=possession)

    if not isinstance(players, list):
        raise InvalidGameSetup('players must be a list of {name, team}')
    roster = []
    for entry in players:
        if not isinstance(entry, dict):
            raise InvalidGameSetup('players must be a list of {name, team}')
        name = _clean_name(entry.get('name'), 'Player name')
        team = entry.get('team')
        if team not in teams:
            raise InvalidGameSetup(f'Player {name!r} has unknown team {team!r}')
        roster.append((name, team))

    max_per_team = int(current_app.config.get('MAX_PLAYERS_PER_TEAM', 15))
    for team in teams:
        size = sum(1 for _, t in roster if t == team)
        if size == 0:
            raise InvalidGameSetup(f'{team} needs at least one player')
        if size > max_per_team:
            raise InvalidGameSetup(f'{team} has {size} players, max is {max_per_team}')

    game = Game(
        team1_name=team1_name,
        team2_name=team2_name,
        status='active',
        initial_possession=possession,
        possession=possession,
    )
    db.session.add(game)
    db.session.flush()
    for name, team in roster:
        db.session.add(Player(name=name, team=team, game_id=game.id))
    db.session.commit()
    current_app.logger.info(f"[game-created] game={game.id} {team1_name} vs {team2_name} possession={possession} players={len(roster)}")
    return game


def get_game(game_id: int) -> Game:
    game = db.session.get(Game, game_id)
    if not game:
        raise UnknownPlayerOrGame(f'Game {game_id} not found', game_id=game_id)
    return game


def end_game(game_id: int) -> Game:
    with _game_lock(game_id):
        game = get_game(game_id)
        if not game.is_active:
            return game
        game.status = 'ended'
        game.ended_at = datetime.now(timezone.utc)
        db.session.add(game)
        db.session.commit()
        current_app.logger.info(f"[game-ended] game={game.id} possession={game.possession}")
        return game


def possession_state(game: Game, log: Optional[EventLog] = None) -> PossessionState:
    miss = (log or EventLog()).pending_miss(game.id)
    if miss is None:
        return PossessionState(game.possession)
    return PossessionState(game.possession, PendingMiss(miss.player_id, miss.player.team, miss.id))


def submit_event(game_id: int, payload: Dict[str, Any]) -> List[Event]:
    """Validate, apply and append one submission; returns the appended events.

    A submission may expand into two linked events (miss + rebound, turnover
    + steal). Either all of them are stored together with the new
    possession, or nothing is.
    """
    log = EventLog()
    with _game_lock(game_id):
        try:
            game = Game.query.filter_by(id=game_id).with_for_update().first()
            if not game:
                raise UnknownPlayerOrGame(f'Game {game_id} not found', game_id=game_id)
            if not game.is_active:
                raise GameNotActive(f'Game {game_id} has ended', game_id=game_id)

            roster = game.roster()
            candidate = validate_shape(payload, roster)

            if current_app.config.get('ENFORCE_MONOTONIC_CLOCK'):
                last = log.last_event(game.id)
                if last and candidate.game_clock_seconds < last.game_clock_seconds:
                    raise InvalidTransition(
                        f'game_clock_seconds {candidate.game_clock_seconds} is earlier than the last event ({last.game_clock_seconds})'
                    )

            state = possession_state(game, log)
            transition = apply(state, candidate, roster, _out_of_bounds_policy())
        except TrackingError as exc:
            db.session.rollback()
            current_app.logger.info(f"[event-rejected] game={game_id} kind={type(exc).__name__} reason={exc.message}")
            raise

        rows = [
            Event(
                player_id=derived.player_id,
                event_type=derived.event_type,
                sub_type=derived.sub_type,
                result=derived.result,
                game_clock_seconds=derived.game_clock_seconds,
                resulting_possession=derived.resulting_possession,
                linked_event_id=state.pending_miss.event_id if derived.link == LINK_PENDING_MISS else None,
            )
            for derived in transition.events
        ]
        try:
            log.append(game.id, rows)
            for previous, row, derived in zip(rows, rows[1:], transition.events[1:]):
                if derived.link == LINK_PREVIOUS:
                    row.linked_event_id = previous.id
            game.possession = transition.state.possession
            if transition.state.pending_miss is not None:
                game.pending_miss_id = next(r.id for r in rows if r.event_type == SHOT)
            else:
                game.pending_miss_id = None
            db.session.add(game)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[event-append-failed] game={game_id}")
            raise

        for row in rows:
            current_app.logger.info(
                f"[event-accepted] game={game.id} seq={row.sequence_index} type={row.event_type} "
                f"player={row.player_id} possession={row.resulting_possession}"
            )
        return rows


def get_events(game_id: int, newest_first: bool = False) -> List[Event]:
    get_game(game_id)
    return EventLog().events_for_game(game_id, newest_first=newest_first)


def get_stats(game_id: int) -> Dict[str, Dict[Any, PlayerStats]]:
    game = get_game(game_id)
    roster = game.roster()
    players = aggregate(EventLog().events_for_game(game_id), roster)
    return {'players': players, 'teams': team_totals(players, roster)}


def audit_game(game_id: int) -> Dict[str, Any]:
    """Replay the stored log and compare with what the game row holds."""
    game = get_game(game_id)
    report = replay(game.initial_possession, EventLog().events_for_game(game_id), game.roster(), _out_of_bounds_policy())
    issues = list(report.issues)
    if report.possession != game.possession:
        issues.append({'sequence_index': None, 'message': f'game holds {game.possession} but replay gives {report.possession}'})
    replayed_miss = report.pending_miss.event_id if report.pending_miss else None
    if replayed_miss != game.pending_miss_id:
        issues.append({'sequence_index': None, 'message': 'pending miss does not match the log'})
    if issues:
        current_app.logger.warning(f"[audit] game={game.id} issues={len(issues)}")
    return {
        'game_id': game.id,
        'events_replayed': report.replayed,
        'possession': report.possession,
        'ok': not issues,
        'issues': issues,
    }
