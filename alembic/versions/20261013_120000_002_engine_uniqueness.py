"""Partial unique indexes for open offers and active sessions

Revision ID: 002
Revises: 001
Create Date: 2026-10-13 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # At most one pending or accepted offer per session
    op.create_index(
        'ux_meetup_offers_open_session',
        'meetup_offers',
        ['session_id'],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'accepted')"),
    )

    # One active availability session per initiator
    op.create_index(
        'ux_availability_sessions_active_initiator',
        'availability_sessions',
        ['initiator_user_id'],
        unique=True,
        postgresql_where=sa.text('active = true'),
    )


def downgrade() -> None:
    op.drop_index('ux_availability_sessions_active_initiator', table_name='availability_sessions')
    op.drop_index('ux_meetup_offers_open_session', table_name='meetup_offers')
