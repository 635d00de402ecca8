"""baseline_migration

Revision ID: 3c1e9b7a5d20
Revises: 
Create Date: 2026-10-17 10:12:41.018274

Production-safe migration: only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '3c1e9b7a5d20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('clinics'):
        op.create_table('clinics',
            sa.Column('id', sa.String(length=32), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('owner_id', sa.String(length=64), nullable=False),
            sa.Column('logo_url', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_clinics_owner_id'), 'clinics', ['owner_id'], unique=False)

    if not table_exists('users'):
        op.create_table('users',
            sa.Column('uid', sa.String(length=64), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('display_name', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=True),
            sa.Column('role', sa.String(), nullable=False),
            sa.Column('clinic_id', sa.String(), nullable=True),
            sa.Column('cpf', sa.String(), nullable=True),
            sa.Column('phone', sa.String(), nullable=True),
            sa.Column('birth_date', sa.String(), nullable=True),
            sa.Column('gender', sa.String(), nullable=True),
            sa.Column('address', sa.JSON(), nullable=True),
            sa.Column('subscription_status', sa.String(), nullable=False, server_default='free'),
            sa.Column('subscription_plan', sa.String(), nullable=False, server_default='free'),
            sa.Column('patient_limit', sa.Integer(), nullable=False, server_default='5'),
            sa.Column('asaas_customer_id', sa.String(), nullable=True),
            sa.Column('asaas_subscription_id', sa.String(), nullable=True),
            sa.Column('stripe_customer_id', sa.String(), nullable=True),
            sa.Column('stripe_subscription_id', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ),
            sa.PrimaryKeyConstraint('uid')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_clinic_id'), 'users', ['clinic_id'], unique=False)
        op.create_index(op.f('ix_users_asaas_subscription_id'), 'users', ['asaas_subscription_id'], unique=False)
        op.create_index(op.f('ix_users_stripe_customer_id'), 'users', ['stripe_customer_id'], unique=False)

    if not table_exists('patient_invites'):
        op.create_table('patient_invites',
            sa.Column('id', sa.String(length=64), nullable=False),
            sa.Column('email_to_invite', sa.String(), nullable=False),
            sa.Column('clinic_id', sa.String(), nullable=False),
            sa.Column('invited_by_uid', sa.String(length=64), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('expires_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['clinic_id'], ['clinics.id'], ),
            sa.ForeignKeyConstraint(['invited_by_uid'], ['users.uid'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_patient_invites_email_to_invite'), 'patient_invites', ['email_to_invite'], unique=False)

    if not table_exists('signup_status'):
        op.create_table('signup_status',
            sa.Column('phone_number', sa.String(length=32), nullable=False),
            sa.Column('clinic_id', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('name', sa.String(), nullable=True),
            sa.Column('cpf', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('phone_number')
        )

    if not table_exists('urinary_logs'):
        op.create_table('urinary_logs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_uid', sa.String(length=64), nullable=False),
            sa.Column('date', sa.DateTime(), nullable=False),
            sa.Column('urgency', sa.Boolean(), nullable=True),
            sa.Column('burning', sa.Boolean(), nullable=True),
            sa.Column('physiotherapy_exercise', sa.Boolean(), nullable=True),
            sa.Column('loss_grams', sa.Float(), nullable=True),
            sa.Column('pad_changes', sa.Integer(), nullable=True),
            sa.Column('medication_notes', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_uid'], ['users.uid'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_urinary_logs_id'), 'urinary_logs', ['id'], unique=False)
        op.create_index(op.f('ix_urinary_logs_user_uid'), 'urinary_logs', ['user_uid'], unique=False)

    if not table_exists('erectile_logs'):
        op.create_table('erectile_logs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_uid', sa.String(length=64), nullable=False),
            sa.Column('date', sa.DateTime(), nullable=False),
            sa.Column('erection_quality', sa.String(), nullable=True),
            sa.Column('medication_used', sa.JSON(), nullable=True),
            sa.Column('medication_notes', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_uid'], ['users.uid'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_erectile_logs_id'), 'erectile_logs', ['id'], unique=False)
        op.create_index(op.f('ix_erectile_logs_user_uid'), 'erectile_logs', ['user_uid'], unique=False)

    if not table_exists('psa_logs'):
        op.create_table('psa_logs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_uid', sa.String(length=64), nullable=False),
            sa.Column('date', sa.DateTime(), nullable=False),
            sa.Column('psa_value', sa.Float(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_uid'], ['users.uid'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_psa_logs_id'), 'psa_logs', ['id'], unique=False)
        op.create_index(op.f('ix_psa_logs_user_uid'), 'psa_logs', ['user_uid'], unique=False)


def downgrade() -> None:
    for table in ('psa_logs', 'erectile_logs', 'urinary_logs', 'signup_status', 'patient_invites', 'users', 'clinics'):
        if table_exists(table):
            op.drop_table(table)
