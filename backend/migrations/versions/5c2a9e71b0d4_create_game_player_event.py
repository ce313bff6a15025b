"""create game, player and event tables

Revision ID: 5c2a9e71b0d4
Revises:
Create Date: 2026-10-19 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9e71b0d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('team1_name', sa.String(length=64), nullable=False),
            sa.Column('team2_name', sa.String(length=64), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
            sa.Column('initial_possession', sa.String(length=64), nullable=False),
            sa.Column('possession', sa.String(length=64), nullable=False),
            sa.Column('pending_miss_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('team', sa.String(length=64), nullable=False),
            sa.Column('game_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['game_id'], ['game.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_player_game_id', 'player', ['game_id'])

    if 'event' not in existing_tables:
        op.create_table(
            'event',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('game_id', sa.Integer(), nullable=False),
            sa.Column('sequence_index', sa.Integer(), nullable=False),
            sa.Column('player_id', sa.Integer(), nullable=False),
            sa.Column('event_type', sa.String(length=16), nullable=False),
            sa.Column('sub_type', sa.String(length=16), nullable=True),
            sa.Column('result', sa.String(length=8), nullable=True),
            sa.Column('game_clock_seconds', sa.Integer(), nullable=False),
            sa.Column('resulting_possession', sa.String(length=64), nullable=False),
            sa.Column('linked_event_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['game_id'], ['game.id']),
            sa.ForeignKeyConstraint(['player_id'], ['player.id']),
            sa.ForeignKeyConstraint(['linked_event_id'], ['event.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('game_id', 'sequence_index', name='uq_event_game_sequence'),
        )
        op.create_index('ix_event_game_id', 'event', ['game_id'])

    # game <-> event is circular; add the pending miss FK once both tables exist
    with op.batch_alter_table('game') as batch_op:
        batch_op.create_foreign_key('fk_game_pending_miss_id', 'event', ['pending_miss_id'], ['id'])


def downgrade():
    with op.batch_alter_table('game') as batch_op:
        batch_op.drop_constraint('fk_game_pending_miss_id', type_='foreignkey')
    op.drop_index('ix_event_game_id', table_name='event')
    op.drop_table('event')
    op.drop_index('ix_player_game_id', table_name='player')
    op.drop_table('player')
    op.drop_table('game')
