"""initial

Revision ID: 3c9e1f2a7b40
Revises: 
Create Date: 2026-10-18 09:14:02.118733

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c9e1f2a7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

request_status = sa.Enum('pending', 'approved', 'temp_approved', 'denied', name='request_status')


def upgrade() -> None:
    # Whitelist
    op.create_table('whitelist_entries',
    sa.Column('identity', sa.String(length=320), nullable=False),
    sa.Column('added_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('added_by', sa.String(length=255), nullable=False),
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_whitelist_entries_identity'), 'whitelist_entries', ['identity'], unique=True)

    # Temporal grants
    op.create_table('temporal_grants',
    sa.Column('identity', sa.String(length=320), nullable=False),
    sa.Column('granted_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('granted_by', sa.String(length=255), nullable=False),
    sa.Column('duration_hours', sa.Integer(), nullable=False),
    sa.Column('request_id', sa.String(length=40), nullable=True),
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.CheckConstraint('duration_hours > 0', name='ck_temporal_grants_duration_positive'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_temporal_grants_identity'), 'temporal_grants', ['identity'], unique=False)
    op.create_index(op.f('ix_temporal_grants_expires_at'), 'temporal_grants', ['expires_at'], unique=False)

    # Access requests
    op.create_table('access_requests',
    sa.Column('request_id', sa.String(length=40), nullable=False),
    sa.Column('identity', sa.String(length=320), nullable=False),
    sa.Column('identity_verified', sa.Boolean(), nullable=False),
    sa.Column('verified_user_id', sa.String(length=255), nullable=True),
    sa.Column('avatar_url', sa.String(length=1000), nullable=True),
    sa.Column('credential_fingerprint', sa.String(length=64), nullable=True),
    sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('source_address', sa.String(length=45), nullable=True),
    sa.Column('user_agent', sa.String(length=512), nullable=True),
    sa.Column('status', request_status, nullable=False),
    sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('denied_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('denial_reason', sa.String(length=1000), nullable=True),
    sa.PrimaryKeyConstraint('request_id')
    )
    op.create_index(op.f('ix_access_requests_identity'), 'access_requests', ['identity'], unique=False)
    op.create_index(op.f('ix_access_requests_status'), 'access_requests', ['status'], unique=False)
    # One pending request per identity
    op.create_index(
        'uq_access_requests_pending_identity',
        'access_requests',
        ['identity'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    # Audit logs
    op.create_table('audit_logs',
    sa.Column('actor', sa.String(length=255), nullable=False),
    sa.Column('actor_ip', sa.String(length=45), nullable=True),
    sa.Column('resource_type', sa.String(length=100), nullable=False),
    sa.Column('resource_id', sa.String(length=255), nullable=False),
    sa.Column('identity', sa.String(length=320), nullable=True),
    sa.Column('action', sa.String(length=50), nullable=False),
    sa.Column('extra_data', sa.JSON(), nullable=True),
    sa.Column('summary', sa.Text(), nullable=True),
    sa.Column('request_id', sa.String(length=100), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_logs_identity'), 'audit_logs', ['identity'], unique=False)
    op.create_index(op.f('ix_audit_logs_created_at'), 'audit_logs', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_audit_logs_created_at'), table_name='audit_logs')
    op.drop_index(op.f('ix_audit_logs_identity'), table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('uq_access_requests_pending_identity', table_name='access_requests')
    op.drop_index(op.f('ix_access_requests_status'), table_name='access_requests')
    op.drop_index(op.f('ix_access_requests_identity'), table_name='access_requests')
    op.drop_table('access_requests')
    request_status.drop(op.get_bind(), checkfirst=True)
    op.drop_index(op.f('ix_temporal_grants_expires_at'), table_name='temporal_grants')
    op.drop_index(op.f('ix_temporal_grants_identity'), table_name='temporal_grants')
    op.drop_table('temporal_grants')
    op.drop_index(op.f('ix_whitelist_entries_identity'), table_name='whitelist_entries')
    op.drop_table('whitelist_entries')
