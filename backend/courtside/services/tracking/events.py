"""Event vocabulary and shape validation.

``validate_shape`` is a pure function: it only looks at the candidate payload
and the game's roster (player id -> team name), never at game history.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .errors import MalformedEvent, UnknownPlayerOrGame

SHOT = 'shot'
REBOUND = 'rebound'
STEAL = 'steal'
TURNOVER = 'turnover'
OUT_OF_BOUNDS = 'out_of_bounds'

EVENT_TYPES = (SHOT, REBOUND, STEAL, TURNOVER, OUT_OF_BOUNDS)
SHOT_TYPES = ('2pt', '3pt')
REBOUND_TYPES = ('offensive', 'defensive')
RESULTS = ('make', 'miss')

_EVENT_TYPE_ALIASES = {
    'out-of-bounds': OUT_OF_BOUNDS,
    'outofbounds': OUT_OF_BOUNDS,
    'oob': OUT_OF_BOUNDS,
}


@dataclass(frozen=True)
class ValidatedEvent:
    event_type: str
    player_id: int
    team: str
    game_clock_seconds: int
    sub_type: Optional[str] = None
    result: Optional[str] = None
    rebounder_id: Optional[int] = None
    stealer_id: Optional[int] = None

    @property
    def is_miss(self) -> bool:
        return self.event_type == SHOT and self.result == 'miss'


def normalize_event_type(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    return _EVENT_TYPE_ALIASES.get(key, key)


def _resolve_player(raw: Any, roster: Mapping[int, str], field: str) -> int:
    if raw is None:
        raise MalformedEvent(f'{field} is required', field=field)
    # Whole ids only: an int or a string of digits
    if isinstance(raw, str) and raw.strip().isdecimal():
        player_id = int(raw)
    elif isinstance(raw, int) and not isinstance(raw, bool):
        player_id = raw
    else:
        raise MalformedEvent(f'{field} must be a player id', field=field, value=raw)
    if player_id not in roster:
        raise UnknownPlayerOrGame(f'Player {player_id} is not on this game\'s roster', field=field, player_id=player_id)
    return player_id


def _clock_seconds(payload: Mapping[str, Any]) -> int:
    raw = payload.get('game_clock_seconds')
    if raw is None:
        raw = payload.get('game_time')
    if raw is None:
        raise MalformedEvent('game_clock_seconds is required', field='game_clock_seconds')
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise MalformedEvent('game_clock_seconds must be an integer', field='game_clock_seconds', value=raw)
    if raw < 0:
        raise MalformedEvent('game_clock_seconds cannot be negative', field='game_clock_seconds', value=raw)
    return raw


def _require_absent(payload: Mapping[str, Any], event_type: str, *fields: str) -> None:
    for field in fields:
        if payload.get(field) is not None:
            raise MalformedEvent(f'{field} is not allowed on a {event_type} event', field=field)


def validate_shape(candidate: Dict[str, Any], roster: Mapping[int, str]) -> ValidatedEvent:
    """Check a candidate payload against the field rules of its event type.

    Raises MalformedEvent for shape problems and UnknownPlayerOrGame when the
    actor (or a linked rebounder/stealer) is not on ``roster``.
    """
    if not isinstance(candidate, dict):
        raise MalformedEvent('Event payload must be a JSON object')

    event_type = normalize_event_type(candidate.get('event_type'))
    if event_type not in EVENT_TYPES:
        raise MalformedEvent(
            f"Unrecognized event_type {candidate.get('event_type')!r}",
            field='event_type',
            allowed=list(EVENT_TYPES),
        )

    sub_type = candidate.get('sub_type')
    result = candidate.get('result')

    if event_type == SHOT:
        if sub_type not in SHOT_TYPES:
            raise MalformedEvent('Shots require sub_type 2pt or 3pt', field='sub_type', value=sub_type)
        if result not in RESULTS:
            raise MalformedEvent('Shots require result make or miss', field='result', value=result)
        _require_absent(candidate, event_type, 'stealer_id')
        if result == 'make':
            _require_absent(candidate, 'made shot', 'rebounder_id')
    elif event_type == REBOUND:
        # Offensive/defensive is derived from the pending miss; a supplied value is checked later
        if sub_type is not None and sub_type not in REBOUND_TYPES:
            raise MalformedEvent('Rebound sub_type must be offensive or defensive', field='sub_type', value=sub_type)
        _require_absent(candidate, event_type, 'result', 'rebounder_id', 'stealer_id')
    else:
        _require_absent(candidate, event_type, 'sub_type', 'result', 'rebounder_id')
        if event_type != TURNOVER:
            _require_absent(candidate, event_type, 'stealer_id')

    clock = _clock_seconds(candidate)
    player_id = _resolve_player(candidate.get('player_id'), roster, 'player_id')

    rebounder_id = None
    if candidate.get('rebounder_id') is not None:
        rebounder_id = _resolve_player(candidate['rebounder_id'], roster, 'rebounder_id')
    stealer_id = None
    if candidate.get('stealer_id') is not None:
        stealer_id = _resolve_player(candidate['stealer_id'], roster, 'stealer_id')
        if stealer_id == player_id:
            raise MalformedEvent('A player cannot steal their own turnover', field='stealer_id')

    return ValidatedEvent(
        event_type=event_type,
        player_id=player_id,
        team=roster[player_id],
        game_clock_seconds=clock,
        sub_type=sub_type,
        result=result if event_type == SHOT else None,
        rebounder_id=rebounder_id,
        stealer_id=stealer_id,
    )
