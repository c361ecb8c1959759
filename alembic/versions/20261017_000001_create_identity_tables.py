"""Create users and permissions tables

Revision ID: 20261017_000001
Revises: None
Create Date: 2026-10-17

Identity records and patient -> doctor access grants.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261017_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the users and permissions tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column(
            'role',
            sa.Enum('patient', 'doctor', name='user_role', create_constraint=True),
            nullable=False
        ),
        sa.Column('salt_hex', sa.String(64), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('wallet_address', sa.String(42), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_wallet_address', 'users', ['wallet_address'])

    op.create_table(
        'permissions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('patient_id', sa.String(36), nullable=False),
        sa.Column('doctor_id', sa.String(36), nullable=False),
        sa.Column('granted_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['patient_id'],
            ['users.id'],
            name='fk_permissions_patient_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['doctor_id'],
            ['users.id'],
            name='fk_permissions_doctor_id',
            ondelete='CASCADE'
        ),
        sa.UniqueConstraint('patient_id', 'doctor_id', name='uq_permissions_patient_doctor'),
    )
    op.create_index('ix_permissions_patient_id', 'permissions', ['patient_id'])
    op.create_index('ix_permissions_doctor_id', 'permissions', ['doctor_id'])


def downgrade() -> None:
    """Drop the permissions and users tables."""
    op.drop_index('ix_permissions_doctor_id', table_name='permissions')
    op.drop_index('ix_permissions_patient_id', table_name='permissions')
    op.drop_table('permissions')
    op.drop_index('ix_users_wallet_address', table_name='users')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
