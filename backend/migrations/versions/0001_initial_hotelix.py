"""initial hotelix schema

Revision ID: 0001_initial_hotelix
Revises: 
Create Date: 2026-10-17
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_hotelix'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade():
    op.create_table('hotels',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nom', sa.String(length=128), nullable=False),
        sa.Column('adresse', sa.String(length=255), nullable=False),
        sa.Column('pays', sa.String(length=64), nullable=False),
        *_timestamps()
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=128), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=128)),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('specialite', sa.String(length=64)),
        sa.Column('hotel_id', sa.Integer(), sa.ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False),
        *_timestamps()
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_hotel_id', 'users', ['hotel_id'])

    op.create_table('zones',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nom', sa.String(length=128), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('hotel_id', sa.Integer(), sa.ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False)
    )
    op.create_index('ix_zones_hotel_id', 'zones', ['hotel_id'])

    op.create_table('sous_zones',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nom', sa.String(length=128), nullable=False),
        sa.Column('zone_id', sa.Integer(), sa.ForeignKey('zones.id', ondelete='RESTRICT'), nullable=False)
    )
    op.create_index('ix_sous_zones_zone_id', 'sous_zones', ['zone_id'])

    op.create_table('interventions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('titre', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('priorite', sa.String(length=16), nullable=False),
        sa.Column('origine', sa.String(length=16), nullable=False),
        sa.Column('statut', sa.String(length=16), nullable=False),
        sa.Column('date_creation', sa.DateTime(timezone=True), nullable=False),
        sa.Column('date_debut', sa.DateTime(timezone=True)),
        sa.Column('date_fin', sa.DateTime(timezone=True)),
        sa.Column('hotel_id', sa.Integer(), sa.ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('demandeur_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('assigne_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('zone_id', sa.Integer(), sa.ForeignKey('zones.id'), nullable=False),
        sa.Column('sous_zone_id', sa.Integer(), sa.ForeignKey('sous_zones.id')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True)
    )
    op.create_index('ix_interventions_type', 'interventions', ['type'])
    op.create_index('ix_interventions_statut', 'interventions', ['statut'])
    op.create_index('ix_interventions_date_creation', 'interventions', ['date_creation'])
    op.create_index('ix_interventions_hotel_id', 'interventions', ['hotel_id'])
    op.create_index('ix_interventions_assigne_id', 'interventions', ['assigne_id'])


def downgrade():
    for table, indexes in (
        ('interventions', ['ix_interventions_assigne_id', 'ix_interventions_hotel_id', 'ix_interventions_date_creation',
                           'ix_interventions_statut', 'ix_interventions_type']),
        ('sous_zones', ['ix_sous_zones_zone_id']),
        ('zones', ['ix_zones_hotel_id']),
        ('users', ['ix_users_hotel_id', 'ix_users_role', 'ix_users_email']),
    ):
        for ix in indexes:
            op.drop_index(ix, table_name=table)
        op.drop_table(table)
    op.drop_table('hotels')
