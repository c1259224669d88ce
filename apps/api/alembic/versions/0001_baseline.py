"""Baseline migration - users, ACL roles, records and streams

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Creates:
- teams, users, team_users, acl_roles, user_roles
- accounts, contacts, leads, cases, opportunities, entity_teams, emails
- notes, note_teams, note_users, attachments
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _ownership_columns() -> list[sa.Column]:
    return [
        sa.Column('assigned_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Users, teams and roles
    # ==========================================================================
    op.create_table(
        'teams',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_name', sa.String(100), nullable=False, unique=True),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('user_type', sa.String(20), server_default=sa.text("'regular'"), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'team_users',
        sa.Column('team_id', sa.Uuid(), sa.ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_index('idx_team_users_user', 'team_users', ['user_id'])

    op.create_table(
        'acl_roles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('is_portal', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('field_data', sa.JSON(), nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Uuid(), sa.ForeignKey('acl_roles.id', ondelete='CASCADE'), primary_key=True),
    )

    # ==========================================================================
    # Business records
    # ==========================================================================
    op.create_table(
        'accounts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('industry', sa.String(100), nullable=True),
        *_ownership_columns(),
    )

    op.create_table(
        'contacts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        *_ownership_columns(),
    )

    op.create_table(
        'leads',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('source', sa.String(50), nullable=True),
        *_ownership_columns(),
    )

    op.create_table(
        'cases',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('priority', sa.String(20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        *_ownership_columns(),
    )

    op.create_table(
        'opportunities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('stage', sa.String(50), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('account_id', sa.Uuid(), sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        *_ownership_columns(),
    )

    op.create_table(
        'entity_teams',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('team_id', sa.Uuid(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('entity_type', 'entity_id', 'team_id', name='uq_entity_team'),
    )
    op.create_index('idx_entity_teams_entity', 'entity_teams', ['entity_type', 'entity_id'])

    op.create_table(
        'emails',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('from_address', sa.String(255), nullable=True),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('date_sent', sa.DateTime(timezone=True), nullable=True),
        sa.Column('parent_type', sa.String(100), nullable=True),
        sa.Column('parent_id', sa.Uuid(), nullable=True),
        *_ownership_columns(),
    )
    op.create_index('idx_emails_parent', 'emails', ['parent_type', 'parent_id'])

    # ==========================================================================
    # Streams
    # ==========================================================================
    op.create_table(
        'notes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(24), nullable=False),
        sa.Column('target_type', sa.String(7), nullable=True),
        sa.Column('post', sa.Text(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('is_internal', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('parent_type', sa.String(100), nullable=True),
        sa.Column('parent_id', sa.Uuid(), nullable=True),
        sa.Column('related_type', sa.String(100), nullable=True),
        sa.Column('related_id', sa.Uuid(), nullable=True),
        sa.Column('super_parent_type', sa.String(100), nullable=True),
        sa.Column('super_parent_id', sa.Uuid(), nullable=True),
        sa.Column('created_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_notes_parent', 'notes', ['parent_type', 'parent_id'])
    op.create_index('idx_notes_super_parent', 'notes', ['super_parent_type', 'super_parent_id'])
    op.create_index('idx_notes_related', 'notes', ['related_type', 'related_id'])
    op.create_index('idx_notes_number', 'notes', ['number'], unique=True)

    op.create_table(
        'note_teams',
        sa.Column('note_id', sa.Uuid(), sa.ForeignKey('notes.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('team_id', sa.Uuid(), sa.ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_index('idx_note_teams_team', 'note_teams', ['team_id'])

    op.create_table(
        'note_users',
        sa.Column('note_id', sa.Uuid(), sa.ForeignKey('notes.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_index('idx_note_users_user', 'note_users', ['user_id'])

    op.create_table(
        'attachments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(100), nullable=True),
        sa.Column('size', sa.Integer(), nullable=True),
        sa.Column('role', sa.String(36), nullable=False),
        sa.Column('parent_type', sa.String(100), nullable=True),
        sa.Column('parent_id', sa.Uuid(), nullable=True),
        sa.Column('related_type', sa.String(100), nullable=True),
        sa.Column('related_id', sa.Uuid(), nullable=True),
        sa.Column('created_by_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_attachments_parent', 'attachments', ['parent_type', 'parent_id'])
    op.create_index('idx_attachments_related', 'attachments', ['related_type', 'related_id'])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        'attachments',
        'note_users',
        'note_teams',
        'notes',
        'emails',
        'entity_teams',
        'opportunities',
        'cases',
        'leads',
        'contacts',
        'accounts',
        'user_roles',
        'acl_roles',
        'team_users',
        'users',
        'teams',
    ):
        op.drop_table(table)
