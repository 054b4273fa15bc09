"""Initial scheduling schema

Revision ID: 000
Revises:
Create Date: 2026-10-19 10:00:00.000000

Creates resources, resource_allocations and the allocation audit trail.
For new installations, run: alembic upgrade head
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '000'
down_revision = None
branch_labels = None
depends_on = None

resource_type = sa.Enum('employee', 'equipment', 'material', 'vehicle', name='resourcetype')
resource_status = sa.Enum(
    'available', 'partially_available', 'unavailable', 'scheduled', 'out_of_service',
    name='resourcestatus'
)
allocation_status = sa.Enum(
    'planned', 'confirmed', 'in_progress', 'completed', 'cancelled',
    name='allocationstatus'
)


def upgrade():
    """Create scheduling tables"""

    # Resources
    op.create_table(
        'resources',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', resource_type, nullable=False),
        sa.Column('status', resource_status, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('attributes', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_resources_type', 'resources', ['type'], unique=False)
    op.create_index('ix_resources_status', 'resources', ['status'], unique=False)

    # Resource Allocations
    op.create_table(
        'resource_allocations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('resource_id', sa.Integer(), nullable=False),
        sa.Column('resource_type', resource_type, nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('hours_allocated', sa.Float(), nullable=True),
        sa.Column('quantity_allocated', sa.Float(), nullable=True),
        sa.Column('status', allocation_status, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['resource_id'], ['resources.id']),
        sa.CheckConstraint('start_date <= end_date', name='ck_resource_allocations_window'),
        sa.CheckConstraint(
            'hours_allocated IS NULL OR quantity_allocated IS NULL',
            name='ck_resource_allocations_single_amount'
        )
    )
    op.create_index('ix_resource_allocations_job_id', 'resource_allocations', ['job_id'], unique=False)
    op.create_index('ix_resource_allocations_resource_id', 'resource_allocations', ['resource_id'], unique=False)
    op.create_index('ix_resource_allocations_status', 'resource_allocations', ['status'], unique=False)
    op.create_index(
        'ix_resource_allocations_resource_window', 'resource_allocations',
        ['resource_id', 'start_date', 'end_date'], unique=False
    )

    # Allocation audit trail (no foreign key: rows outlive deleted allocations)
    op.create_table(
        'allocation_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('allocation_id', sa.Integer(), nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('resource_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_allocation_events_allocation_id', 'allocation_events', ['allocation_id'], unique=False)
    op.create_index('ix_allocation_events_job_id', 'allocation_events', ['job_id'], unique=False)
    op.create_index('ix_allocation_events_resource_id', 'allocation_events', ['resource_id'], unique=False)
    op.create_index('ix_allocation_events_created_at', 'allocation_events', ['created_at'], unique=False)


def downgrade():
    """Drop scheduling tables"""

    op.drop_table('allocation_events')
    op.drop_table('resource_allocations')
    op.drop_table('resources')

    allocation_status.drop(op.get_bind(), checkfirst=True)
    resource_status.drop(op.get_bind(), checkfirst=True)
    resource_type.drop(op.get_bind(), checkfirst=True)
