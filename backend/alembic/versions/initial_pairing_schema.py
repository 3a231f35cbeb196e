"""Initial coffee pairing schema

Revision ID: initial_pairing_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_pairing_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('USER', 'ORG_ADMIN', 'SUPER_ADMIN', name='userrole')
period_status = sa.Enum('UPCOMING', 'ACTIVE', 'CLOSED', name='pairingperiodstatus')
pairing_status = sa.Enum('PLANNED', 'MATCHED', 'MET', 'NOT_MET', 'CANCELLED', name='pairingstatus')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create organizations, users, pairing and gamification tables."""
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('timezone', sa.String(50), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_organizations'),
        sa.UniqueConstraint('code', name='uq_organizations_code'),
    )
    op.create_index('ix_organizations_code', 'organizations', ['code'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('suspended_until', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_users_organization_id_organizations', ondelete='CASCADE'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])

    op.create_table(
        'algorithm_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('period_length_days', sa.Integer(), nullable=False),
        sa.Column('random_seed', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_algorithm_settings'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_algorithm_settings_organization_id_organizations', ondelete='CASCADE'),
        sa.UniqueConstraint('organization_id', name='uq_algorithm_settings_organization_id'),
    )

    op.create_table(
        'pairing_periods',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', period_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_pairing_periods'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_pairing_periods_organization_id_organizations', ondelete='CASCADE'),
    )
    op.create_index('ix_pairing_periods_organization_id', 'pairing_periods', ['organization_id'])
    op.create_index('ix_pairing_periods_org_start', 'pairing_periods', ['organization_id', 'start_date'])
    op.create_index(
        'uq_pairing_periods_one_active',
        'pairing_periods',
        ['organization_id'],
        unique=True,
        sqlite_where=sa.text("status = 'ACTIVE'"),
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    op.create_table(
        'pairings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('period_id', sa.Integer(), nullable=False),
        sa.Column('user_a_id', sa.Integer(), nullable=False),
        sa.Column('user_b_id', sa.Integer(), nullable=False),
        sa.Column('status', pairing_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_pairings'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_pairings_organization_id_organizations', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['period_id'], ['pairing_periods.id'], name='fk_pairings_period_id_pairing_periods', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_a_id'], ['users.id'], name='fk_pairings_user_a_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_b_id'], ['users.id'], name='fk_pairings_user_b_id_users', ondelete='CASCADE'),
    )
    op.create_index('ix_pairings_organization_id', 'pairings', ['organization_id'])
    op.create_index('ix_pairings_period_id', 'pairings', ['period_id'])
    op.create_index('ix_pairings_period_user_a', 'pairings', ['period_id', 'user_a_id'])
    op.create_index('ix_pairings_period_user_b', 'pairings', ['period_id', 'user_b_id'])

    op.create_table(
        'user_blocks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('blocker_id', sa.Integer(), nullable=False),
        sa.Column('blocked_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_user_blocks'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_user_blocks_organization_id_organizations', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['blocker_id'], ['users.id'], name='fk_user_blocks_blocker_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['blocked_id'], ['users.id'], name='fk_user_blocks_blocked_id_users', ondelete='CASCADE'),
        sa.UniqueConstraint('blocker_id', 'blocked_id', name='uq_user_blocks_blocker_blocked'),
    )
    op.create_index('ix_user_blocks_organization_id', 'user_blocks', ['organization_id'])
    op.create_index('ix_user_blocks_blocker_id', 'user_blocks', ['blocker_id'])
    op.create_index('ix_user_blocks_blocked_id', 'user_blocks', ['blocked_id'])

    op.create_table(
        'cycle_participations',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('consecutive_count', sa.Integer(), nullable=False),
        sa.Column('last_participation_cycle', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('user_id', 'organization_id', name='pk_cycle_participations'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_cycle_participations_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_cycle_participations_organization_id_organizations', ondelete='CASCADE'),
    )

    op.create_table(
        'achievements',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(50), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_achievements'),
    )
    op.create_index('ix_achievements_type', 'achievements', ['type'])

    op.create_table(
        'user_achievements',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('achievement_id', sa.Integer(), nullable=False),
        sa.Column('unlocked_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_user_achievements'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_user_achievements_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['achievement_id'], ['achievements.id'], name='fk_user_achievements_achievement_id_achievements', ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'achievement_id', name='uq_user_achievements_user_achievement'),
    )
    op.create_index('ix_user_achievements_user_id', 'user_achievements', ['user_id'])

    op.create_table(
        'scheduler_controls',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('pause_pairing', sa.Boolean(), nullable=False),
        sa.Column('paused_reason', sa.String(255), nullable=True),
        sa.Column('paused_by_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_scheduler_controls'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_scheduler_controls_organization_id_organizations', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['paused_by_id'], ['users.id'], name='fk_scheduler_controls_paused_by_id_users', ondelete='SET NULL'),
        sa.UniqueConstraint('organization_id', name='uq_scheduler_controls_organization_id'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('organization_id', sa.Integer(), nullable=True),
        sa.Column('field_name', sa.String(100), nullable=True),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_audit_logs'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_audit_logs_user_id_users', ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], name='fk_audit_logs_organization_id_organizations', ondelete='CASCADE'),
    )
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_organization_id', 'audit_logs', ['organization_id'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    """Drop all coffee pairing tables."""
    op.drop_table('audit_logs')
    op.drop_table('scheduler_controls')
    op.drop_table('user_achievements')
    op.drop_table('achievements')
    op.drop_table('cycle_participations')
    op.drop_table('user_blocks')
    op.drop_table('pairings')
    op.drop_table('pairing_periods')
    op.drop_table('algorithm_settings')
    op.drop_table('users')
    op.drop_table('organizations')
    pairing_status.drop(op.get_bind(), checkfirst=True)
    period_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
