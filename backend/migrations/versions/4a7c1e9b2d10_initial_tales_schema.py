"""initial tales schema: users, sessions, messages, gifts, inventory, host replies, levels

Revision ID: 4a7c1e9b2d10
Revises:
Create Date: 2025-09-14 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4a7c1e9b2d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('experience', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('gems', sa.Integer(), nullable=False, server_default='100'),
        sa.Column('clues_solved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('online', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'game_session',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='waiting'),
        sa.Column('current_clue', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('hints_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('player_name', sa.String(length=64), nullable=True),
        sa.Column('host_name', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'message',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.String(length=64), sa.ForeignKey('game_session.id'), nullable=False),
        sa.Column('sender_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False, server_default='text'),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('reactions', sa.Text(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_message_session_id', 'message', ['session_id'])
    op.create_index('ix_message_timestamp', 'message', ['timestamp'])

    op.create_table(
        'gift',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('icon', sa.String(length=16), nullable=False),
        sa.Column('rarity', sa.String(length=16), nullable=False, server_default='common'),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_gift_name', 'gift', ['name'], unique=True)

    op.create_table(
        'inventory_item',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('gift_id', sa.Integer(), sa.ForeignKey('gift.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('acquired_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'gift_id', name='uq_inventory_user_gift'),
    )
    op.create_index('ix_inventory_item_user_id', 'inventory_item', ['user_id'])

    op.create_table(
        'host_reply',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('keyword', sa.String(length=64), nullable=False),
        sa.Column('response', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False, server_default='general'),
        sa.Column('emotion', sa.String(length=32), nullable=False, server_default='neutral'),
        sa.Column('reward', sa.String(length=64), nullable=True),
    )
    op.create_index('ix_host_reply_position', 'host_reply', ['position'])

    op.create_table(
        'level',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('level_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('options', sa.Text(), nullable=True),
        sa.Column('correct', sa.String(length=64), nullable=False),
        sa.Column('unlocked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_by', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_level_level_id', 'level', ['level_id'], unique=True)

    op.create_table(
        'completed_level',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('level_id', sa.Integer(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'level_id', name='uq_completed_user_level'),
    )
    op.create_index('ix_completed_level_user_id', 'completed_level', ['user_id'])


def downgrade():
    op.drop_index('ix_completed_level_user_id', table_name='completed_level')
    op.drop_table('completed_level')
    op.drop_index('ix_level_level_id', table_name='level')
    op.drop_table('level')
    op.drop_index('ix_host_reply_position', table_name='host_reply')
    op.drop_table('host_reply')
    op.drop_index('ix_inventory_item_user_id', table_name='inventory_item')
    op.drop_table('inventory_item')
    op.drop_index('ix_gift_name', table_name='gift')
    op.drop_table('gift')
    op.drop_index('ix_message_timestamp', table_name='message')
    op.drop_index('ix_message_session_id', table_name='message')
    op.drop_table('message')
    op.drop_table('game_session')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
