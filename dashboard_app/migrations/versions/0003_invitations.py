"""create invitations table

Revision ID: 0003_invitations
Revises: 0002_organizations_and_memberships
Create Date: 2026-09-01 09:20:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = '0003_invitations'
down_revision = '0002_organizations_and_memberships'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'invitations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False, index=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False, index=True),
        sa.Column('invited_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='member'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("status IN ('pending','accepted','cancelled','expired')", name='ck_invitations_status'),
    )
    # Only one pending invitation per (organization, email); concurrent invites race on this index
    op.create_index(
        'uq_invitations_org_email_pending',
        'invitations',
        ['organization_id', 'email'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )


def downgrade():
    op.drop_index('uq_invitations_org_email_pending', table_name='invitations')
    op.drop_table('invitations')
