from courtside import db
from courtside.services.tracking.roster import Roster
from datetime import datetime, timezone


def _utcnow():
    return datetime.now(timezone.utc)


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    team1_name = db.Column(db.String(64), nullable=False)
    team2_name = db.Column(db.String(64), nullable=False)
    status = db.Column(db.String(16), nullable=False, default='active') # active, ended
    initial_possession = db.Column(db.String(64), nullable=False)
    possession = db.Column(db.String(64), nullable=False)
    # Unresolved missed shot awaiting a rebound or out-of-bounds
    pending_miss_id = db.Column(db.Integer, db.ForeignKey('event.id', name='fk_game_pending_miss_id', use_alter=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)
    players = db.relationship('Player', back_populates='game', order_by='Player.id')
    pending_miss = db.relationship('Event', foreign_keys=[pending_miss_id], post_update=True)

    @property
    def teams(self):
        return (self.team1_name, self.team2_name)

    @property
    def is_active(self):
        return self.status == 'active'

    def roster(self):
        """Player id -> team name for this game."""
        return Roster(self.teams, {p.id: p.team for p in self.players})

    def to_dict(self):
        return {
            'id': self.id,
            'team1_name': self.team1_name,
            'team2_name': self.team2_name,
            'status': self.status,
            'initial_possession': self.initial_possession,
            'possession': self.possession,
            'pending_miss': self.pending_miss.to_dict() if self.pending_miss else None,
            'players': [p.to_dict() for p in self.players],
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'ended_at': self.ended_at.isoformat() if self.ended_at else None,
        }


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    team = db.Column(db.String(64), nullable=False)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    game = db.relationship('Game', back_populates='players')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'team': self.team,
            'game_id': self.game_id,
        }


class Event(db.Model):
    __tablename__ = 'event'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'sequence_index', name='uq_event_game_sequence'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    sequence_index = db.Column(db.Integer, nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    event_type = db.Column(db.String(16), nullable=False) # shot, rebound, steal, turnover, out_of_bounds
    sub_type = db.Column(db.String(16), nullable=True) # 2pt/3pt or offensive/defensive
    result = db.Column(db.String(8), nullable=True) # make, miss
    game_clock_seconds = db.Column(db.Integer, nullable=False, default=0)
    resulting_possession = db.Column(db.String(64), nullable=False)
    # Miss resolved by a rebound/out-of-bounds, or turnover paired with a steal
    linked_event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    game = db.relationship('Game', foreign_keys=[game_id])
    player = db.relationship('Player')

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'sequence_index': self.sequence_index,
            'player_id': self.player_id,
            'player_name': self.player.name if self.player else None,
            'player_team': self.player.team if self.player else None,
            'event_type': self.event_type,
            'sub_type': self.sub_type,
            'result': self.result,
            'game_time': self.game_clock_seconds,
            'resulting_possession': self.resulting_possession,
            'linked_event_id': self.linked_event_id,
            'timestamp': self.created_at.isoformat() if self.created_at else None,
        }
