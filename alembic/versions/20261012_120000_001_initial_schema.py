"""Initial schema with all tables.

Revision ID: 001
Revises:
Create Date: 2026-10-12 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all initial tables."""

    # Users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('verification_status', sa.String(20), nullable=True, server_default='unverified'),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('last_location_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('max_distance_miles', sa.Float(), nullable=False, server_default='25'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Swipes table (one current decision per direction)
    op.create_table(
        'swipes',
        sa.Column('from_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('to_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('decision', sa.String(10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['from_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['to_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('from_user_id', 'to_user_id'),
        sa.CheckConstraint("decision IN ('left', 'right')", name='swipe_decision_check'),
    )

    # Matches table
    op.create_table(
        'matches',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_a_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_b_id', postgresql.UUID(as_uuid=True), nullable=False),
        # "<min>:<max>" of the two user ids, one match per unordered pair
        sa.Column('pair_key', sa.String(80), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('coordination_ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_a_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_b_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('user_a_id <> user_b_id', name='match_distinct_users_check'),
        sa.UniqueConstraint('pair_key', name='uq_matches_pair_key'),
    )
    op.create_index('ix_matches_user_a_id', 'matches', ['user_a_id'])
    op.create_index('ix_matches_user_b_id', 'matches', ['user_b_id'])

    # Messages table
    op.create_table(
        'messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('match_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('sender_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['match_id'], ['matches.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_messages_match_id', 'messages', ['match_id'])

    # Meet decisions table
    op.create_table(
        'meet_decisions',
        sa.Column('match_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('decision', sa.String(10), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['match_id'], ['matches.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('match_id', 'user_id'),
        sa.CheckConstraint("decision IN ('yes', 'no')", name='meet_decision_value_check'),
    )

    # Availability sessions table
    op.create_table(
        'availability_sessions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('initiator_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['initiator_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_availability_sessions_initiator_user_id',
        'availability_sessions',
        ['initiator_user_id'],
    )

    # Session candidates table
    op.create_table(
        'session_candidates',
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('candidate_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('match_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('response', sa.String(10), nullable=False, server_default='pending'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['availability_sessions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['candidate_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['match_id'], ['matches.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('session_id', 'candidate_user_id'),
        sa.CheckConstraint("response IN ('pending', 'yes', 'no')", name='candidate_response_check'),
    )

    # Meetup offers table
    op.create_table(
        'meetup_offers',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('session_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('initiator_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('recipient_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('place_id', sa.String(200), nullable=False),
        sa.Column('place_label', sa.String(200), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('respond_by', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location_expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['session_id'], ['availability_sessions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['initiator_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipient_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'expired', 'location_expired')",
            name='meetup_offer_status_check',
        ),
    )
    op.create_index('ix_meetup_offers_recipient_user_id', 'meetup_offers', ['recipient_user_id'])
    op.create_index('ix_meetup_offers_session_created', 'meetup_offers', ['session_id', 'created_at'])

    # Push tokens table
    op.create_table(
        'push_tokens',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('token', sa.String(255), nullable=False),
        sa.Column('platform', sa.String(20), nullable=False, server_default='unknown'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token', name='uq_push_tokens_token'),
    )
    op.create_index('ix_push_tokens_user_id', 'push_tokens', ['user_id'])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table('push_tokens')
    op.drop_table('meetup_offers')
    op.drop_table('session_candidates')
    op.drop_table('availability_sessions')
    op.drop_table('meet_decisions')
    op.drop_table('messages')
    op.drop_table('matches')
    op.drop_table('swipes')
    op.drop_table('users')
