"""initial ipam sync schema

Revision ID: 20261019_init
Revises:
Create Date: 2026-10-19 09:00:00
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

# revision identifiers, used by Alembic.
revision = '20261019_init'
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column('id', UUID(as_uuid=True), primary_key=True,
                     server_default=sa.text('gen_random_uuid()'))


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        'tenants',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(200), nullable=False, unique=True),
        sa.Column('name', sa.String(200), server_default=''),
        sa.Column('current_tenant_id', UUID(as_uuid=True), sa.ForeignKey('tenants.id')),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'api_connections',
        _id(),
        sa.Column('tenant_id', UUID(as_uuid=True), sa.ForeignKey('tenants.id')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, server_default=''),
        sa.Column('connection_type', sa.String(30), nullable=False, server_default='rest'),
        sa.Column('sync_target', sa.String(30), nullable=False, server_default='libraries'),
        sa.Column('api_url', sa.Text, nullable=False),
        sa.Column('headers', JSONB, server_default='{}'),
        sa.Column('sheet_name', sa.String(200), server_default=''),
        sa.Column('range_notation', sa.String(50), server_default='A:Z'),
        sa.Column('field_mappings', JSONB, server_default='{}'),
        sa.Column('auto_sync_enabled', sa.Boolean, server_default=sa.false()),
        sa.Column('sync_frequency_minutes', sa.Integer, server_default='5'),
        sa.Column('sync_frequency_type', sa.String(20), server_default='minutes'),
        sa.Column('last_sync', sa.DateTime),
        sa.Column('last_sync_status', sa.String(20)),
        sa.Column('last_sync_message', sa.Text),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_api_connections_tenant_id', 'api_connections', ['tenant_id'])

    op.create_table(
        'google_sheets_connections',
        _id(),
        sa.Column('api_connection_id', UUID(as_uuid=True),
                  sa.ForeignKey('api_connections.id'), nullable=False, unique=True),
        sa.Column('spreadsheet_url', sa.Text, server_default=''),
        sa.Column('spreadsheet_id', sa.String(200), server_default=''),
        sa.Column('spreadsheet_name', sa.String(200), server_default=''),
        sa.Column('sheet_name', sa.String(200), server_default=''),
        sa.Column('range_notation', sa.String(50), server_default='A:Z'),
        sa.Column('auth_type', sa.String(20), nullable=False, server_default='public'),
        sa.Column('google_account_id', sa.String(200)),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        'devices',
        _id(),
        sa.Column('tenant_id', UUID(as_uuid=True), sa.ForeignKey('tenants.id')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('device_type', sa.String(50), server_default='server'),
        sa.Column('manufacturer', sa.String(200), server_default=''),
        sa.Column('model', sa.String(200), server_default=''),
        sa.Column('serial_number', sa.String(200), server_default=''),
        sa.Column('description', sa.Text, server_default=''),
        sa.Column('status', sa.String(20), server_default='active'),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_devices_tenant_id', 'devices', ['tenant_id'])
    op.create_index('ix_devices_name', 'devices', ['name'])

    op.create_table(
        'libraries',
        _id(),
        sa.Column('tenant_id', UUID(as_uuid=True), sa.ForeignKey('tenants.id')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('version', sa.String(100), server_default='-'),
        sa.Column('vendor', sa.String(200), server_default='-'),
        sa.Column('product_type', sa.String(50), server_default='software'),
        sa.Column('description', sa.Text, server_default=''),
        sa.Column('device_name', sa.String(200), server_default=''),
        sa.Column('process_name', sa.String(200), server_default=''),
        sa.Column('install_path', sa.Text, server_default=''),
        sa.Column('install_date', sa.String(50)),
        sa.Column('license_type', sa.String(100), server_default=''),
        sa.Column('license_expiry', sa.String(50)),
        sa.Column('last_update', sa.String(50)),
        sa.Column('security_patch_level', sa.String(100), server_default=''),
        sa.Column('vulnerability_status', sa.String(50), server_default='unknown'),
        sa.Column('cpu_usage', sa.Float),
        sa.Column('memory_usage', sa.Integer),
        sa.Column('disk_usage', sa.Integer),
        sa.Column('tags', JSONB),
        sa.Column('api_connection_id', UUID(as_uuid=True), sa.ForeignKey('api_connections.id')),
        sa.Column('status', sa.String(20), server_default='active'),
        sa.Column('deleted_at', sa.DateTime),
        sa.Column('deleted_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('deletion_reason', sa.String(200)),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_libraries_tenant_id', 'libraries', ['tenant_id'])
    op.create_index('ix_libraries_name', 'libraries', ['name'])
    op.create_index('ix_libraries_api_connection_id', 'libraries', ['api_connection_id'])

    op.create_table(
        'contacts',
        _id(),
        sa.Column('tenant_id', UUID(as_uuid=True), sa.ForeignKey('tenants.id')),
        sa.Column('email', sa.String(200), nullable=False),
        sa.Column('name', sa.String(200), server_default=''),
        sa.Column('phone', sa.String(50), server_default=''),
        sa.Column('mobile', sa.String(50), server_default=''),
        sa.Column('title', sa.String(200), server_default=''),
        sa.Column('department', sa.String(200), server_default=''),
        sa.Column('office_location', sa.String(200), server_default=''),
        sa.Column('responsibilities', JSONB),
        sa.Column('is_active', sa.Boolean, server_default=sa.true()),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_contacts_tenant_id', 'contacts', ['tenant_id'])
    op.create_index('ix_contacts_email', 'contacts', ['email'])

    op.create_table(
        'sync_history',
        _id(),
        sa.Column('api_connection_id', UUID(as_uuid=True),
                  sa.ForeignKey('api_connections.id'), nullable=False),
        sa.Column('initiated_by', UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('execution_type', sa.String(20), server_default='manual'),
        sa.Column('status', sa.String(20), server_default='running'),
        sa.Column('sync_started_at', sa.DateTime, nullable=False),
        sa.Column('sync_completed_at', sa.DateTime),
        sa.Column('records_processed', sa.Integer, server_default='0'),
        sa.Column('records_added', sa.Integer, server_default='0'),
        sa.Column('records_updated', sa.Integer, server_default='0'),
        sa.Column('records_deactivated', sa.Integer, server_default='0'),
        sa.Column('sync_details', JSONB, server_default='{}'),
        sa.Column('error_message', sa.Text),
    )
    # Running-run guard and history listing both filter by connection
    op.create_index('ix_sync_history_api_connection_id', 'sync_history', ['api_connection_id'])
    op.create_index('ix_sync_history_status', 'sync_history', ['api_connection_id', 'status'])


def downgrade():
    op.drop_table('sync_history')
    op.drop_table('contacts')
    op.drop_table('libraries')
    op.drop_table('devices')
    op.drop_table('google_sheets_connections')
    op.drop_table('api_connections')
    op.drop_table('users')
    op.drop_table('tenants')
