"""Create profiles, preferences, anonymity ledger and chat tables

Revision ID: 0001_create_chat_tables
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_create_chat_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def _base_indexes(table: str):
    op.create_index(f'ix_{table}_id', table, ['id'])
    op.create_index(f'ix_{table}_created_at', table, ['created_at'])


def upgrade() -> None:
    op.create_table(
        'profiles',
        *_base_columns(),
        sa.Column('role', sa.String(length=10), nullable=False),
        sa.Column('real_name', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _base_indexes('profiles')
    op.create_index('ix_profiles_role', 'profiles', ['role'])

    op.create_table(
        'mentor_preferences',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('nickname', sa.String(length=30), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _base_indexes('mentor_preferences')
    op.create_index('ix_mentor_preferences_user_id', 'mentor_preferences', ['user_id'], unique=True)

    op.create_table(
        'student_preferences',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('display_mode', sa.String(length=20), nullable=False),
        sa.Column('nickname', sa.String(length=20), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _base_indexes('student_preferences')
    op.create_index('ix_student_preferences_user_id', 'student_preferences', ['user_id'], unique=True)

    op.create_table(
        'anonymity_assignments',
        *_base_columns(),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('mentor_id', sa.Uuid(), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'mentor_id', name='uq_anonymity_pair'),
        sa.UniqueConstraint('mentor_id', 'number', name='uq_anonymity_mentor_number'),
        sa.CheckConstraint('number > 0', name='ck_anonymity_number_positive'),
    )
    _base_indexes('anonymity_assignments')
    op.create_index('ix_anonymity_assignments_student_id', 'anonymity_assignments', ['student_id'])
    op.create_index('ix_anonymity_assignments_mentor_id', 'anonymity_assignments', ['mentor_id'])

    op.create_table(
        'chat_rooms',
        *_base_columns(),
        sa.Column('mentor_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mentor_id', 'student_id', name='uq_chat_room_pair'),
    )
    _base_indexes('chat_rooms')
    op.create_index('ix_chat_rooms_mentor_id', 'chat_rooms', ['mentor_id'])
    op.create_index('ix_chat_rooms_student_id', 'chat_rooms', ['student_id'])
    op.create_index('ix_chat_rooms_status', 'chat_rooms', ['status'])

    op.create_table(
        'chat_messages',
        *_base_columns(),
        sa.Column('room_id', sa.Uuid(), nullable=False),
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Uuid(), nullable=False),
        sa.Column('sender_role', sa.String(length=10), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('client_message_id', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['room_id'], ['chat_rooms.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'seq', name='uq_chat_message_room_seq'),
        sa.UniqueConstraint('room_id', 'sender_id', 'client_message_id', name='uq_chat_message_client_id'),
    )
    _base_indexes('chat_messages')
    op.create_index('ix_chat_messages_room_id', 'chat_messages', ['room_id'])
    op.create_index('ix_chat_messages_sender_id', 'chat_messages', ['sender_id'])
    op.create_index('idx_chat_message_room_time', 'chat_messages', ['room_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('chat_messages')
    op.drop_table('chat_rooms')
    op.drop_table('anonymity_assignments')
    op.drop_table('student_preferences')
    op.drop_table('mentor_preferences')
    op.drop_table('profiles')
