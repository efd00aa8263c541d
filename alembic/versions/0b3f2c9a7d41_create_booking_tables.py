"""create booking tables

Revision ID: 0b3f2c9a7d41
Revises:
Create Date: 2026-10-18 10:12:44.501233

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0b3f2c9a7d41'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Users (registered by the bot)
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('telegram_chat_id', sa.BigInteger(), nullable=True, unique=True),
        sa.Column('is_manager', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('registration_date', sa.DateTime(), server_default=sa.text('now()'), nullable=True)
    )

    # 2. Service catalog
    op.create_table(
        'service_categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True)
    )

    op.create_table(
        'services',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('service_categories.id', ondelete='SET NULL'), nullable=True),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive')
    )
    op.create_index('ix_services_category_id', 'services', ['category_id'])

    # 3. Appointments
    appointment_status = postgresql.ENUM('confirmed', 'cancelled', 'completed', name='appointment_status')
    appointment_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('status', postgresql.ENUM(name='appointment_status', create_type=False), nullable=False),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.Column('modified_at', sa.DateTime(), nullable=True)
    )

    op.create_index('ix_appointments_user_id', 'appointments', ['user_id'])
    op.create_index('ix_appointments_status', 'appointments', ['status'])
    op.create_index('ix_appointments_service_date', 'appointments', ['service_id', 'appointment_date'])

    # One live booking per (service, date, start); cancelled rows free the slot
    op.create_index(
        'uq_appointments_live_slot',
        'appointments',
        ['service_id', 'appointment_date', 'start_time'],
        unique=True,
        postgresql_where=sa.text("status != 'cancelled'")
    )

    # 4. Reviews
    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('appointment_id', sa.Integer(), sa.ForeignKey('appointments.id'), nullable=False, unique=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('photo_before_ref', sa.String(255), nullable=True),
        sa.Column('photo_after_ref', sa.String(255), nullable=True),
        sa.Column('review_date', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range')
    )
    op.create_index('ix_reviews_user_id', 'reviews', ['user_id'])

    # 5. Review drafts (one per chat session, expire after a TTL)
    op.create_table(
        'review_drafts',
        sa.Column('session_key', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('appointment_id', sa.Integer(), sa.ForeignKey('appointments.id'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('photo_before_ref', sa.String(255), nullable=True),
        sa.Column('photo_after_ref', sa.String(255), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False)
    )
    op.create_index('ix_review_drafts_expires_at', 'review_drafts', ['expires_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_review_drafts_expires_at', table_name='review_drafts')
    op.drop_table('review_drafts')

    op.drop_index('ix_reviews_user_id', table_name='reviews')
    op.drop_table('reviews')

    op.drop_index('uq_appointments_live_slot', table_name='appointments')
    op.drop_index('ix_appointments_service_date', table_name='appointments')
    op.drop_index('ix_appointments_status', table_name='appointments')
    op.drop_index('ix_appointments_user_id', table_name='appointments')
    op.drop_table('appointments')
    postgresql.ENUM(name='appointment_status').drop(op.get_bind(), checkfirst=True)

    op.drop_index('ix_services_category_id', table_name='services')
    op.drop_table('services')
    op.drop_table('service_categories')
    op.drop_table('users')
