"""Documents, notifications and subscriptions

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None  # This is the first migration
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'documents',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(100), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('filename', sa.String(255), nullable=False),
        sa.Column('file_path', sa.String(500), nullable=True),
        sa.Column('mime_type', sa.String(100), nullable=True),
        sa.Column('file_size', sa.Integer, nullable=True),
        sa.Column('category', sa.String(50), nullable=False, server_default='Other'),
        sa.Column('summary', sa.Text, nullable=True),
        sa.Column('extracted_data', sa.JSON, nullable=True),
        sa.Column('due_date', sa.String(32), nullable=True),
        sa.Column('amount', sa.Float, nullable=True),
        sa.Column('reference_id', sa.String(255), nullable=True),
        sa.Column('urgency_score', sa.Integer, nullable=False, server_default='1'),
        sa.Column('confidence_score', sa.Float, nullable=False, server_default='0.5'),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_documents_owner_id', 'documents', ['owner_id'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(100), nullable=False),
        sa.Column('document_id', sa.String(36), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('priority', sa.Integer, nullable=False, server_default='1'),
        sa.Column('due_on', sa.Date, nullable=True),
        sa.Column('read', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.CheckConstraint(
            "type IN ('due_date','expiry','payment','renewal','urgent','overdue')",
            name='ck_notifications_type'
        ),
    )
    op.create_index('ix_notifications_owner_id', 'notifications', ['owner_id'])
    op.create_index('ix_notifications_document_id', 'notifications', ['document_id'])
    op.create_index('ix_notifications_due_on', 'notifications', ['due_on'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])
    # Covers the dedupe lookup of a derivation run
    op.create_index(
        'ix_notifications_dedupe',
        'notifications',
        ['owner_id', 'document_id', 'due_on', 'created_at']
    )

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(100), nullable=False),
        sa.Column('plan_id', sa.String(32), nullable=False, server_default='free'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('customer_id', sa.String(255), nullable=True),
        sa.Column('current_period_end', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'], unique=True)


def downgrade():
    op.drop_index('ix_subscriptions_user_id', table_name='subscriptions')
    op.drop_table('subscriptions')

    for index_name in (
        'ix_notifications_dedupe',
        'ix_notifications_created_at',
        'ix_notifications_due_on',
        'ix_notifications_document_id',
        'ix_notifications_owner_id',
    ):
        op.drop_index(index_name, table_name='notifications')
    op.drop_table('notifications')

    op.drop_index('ix_documents_owner_id', table_name='documents')
    op.drop_table('documents')
