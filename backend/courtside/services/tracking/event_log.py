from typing import List, Optional, Sequence

from sqlalchemy import func

from courtside import db
from courtside.models import Event, Game


class EventLog:
    """Append-only, sequence-ordered ledger of accepted events.

    ``append`` only stages rows in the current session and flushes them so
    ids exist; the caller owns the commit, which makes a batch (miss +
    rebound, turnover + steal) land all-or-nothing.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def next_sequence_index(self, game_id: int) -> int:
        last = self.session.query(func.max(Event.sequence_index)).filter(Event.game_id == game_id).scalar()
        return 0 if last is None else last + 1

    def append(self, game_id: int, rows: Sequence[Event]) -> List[int]:
        next_index = self.next_sequence_index(game_id)
        indices = []
        for offset, row in enumerate(rows):
            if row.id is not None:
                raise ValueError('Events are immutable once appended')
            row.game_id = game_id
            row.sequence_index = next_index + offset
            self.session.add(row)
            indices.append(row.sequence_index)
        self.session.flush()
        return indices

    def events_for_game(self, game_id: int, newest_first: bool = False) -> List[Event]:
        order = Event.sequence_index.desc() if newest_first else Event.sequence_index.asc()
        return self.session.query(Event).filter(Event.game_id == game_id).order_by(order).all()

    def last_event(self, game_id: int) -> Optional[Event]:
        return (
            self.session.query(Event)
            .filter(Event.game_id == game_id)
            .order_by(Event.sequence_index.desc())
            .first()
        )

    def pending_miss(self, game_id: int) -> Optional[Event]:
        game = self.session.get(Game, game_id)
        if not game or not game.pending_miss_id:
            return None
        return self.session.get(Event, game.pending_miss_id)
