"""baseline_migration

Revision ID: 5c1e07a9b3d2
Revises: 
Create Date: 2026-10-18 10:12:41.518203

Production-safe migration: only creates tables that do not exist yet.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5c1e07a9b3d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('empresas'):
        op.create_table('empresas',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('nombre', sa.String(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_empresas_id'), 'empresas', ['id'], unique=False)

    if not table_exists('perfiles'):
        op.create_table('perfiles',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('nombre_completo', sa.String(), nullable=False),
            sa.Column('rol', sa.String(), nullable=False),
            sa.Column('empresa_id', sa.Integer(), nullable=True),
            sa.Column('plan', sa.String(), nullable=False),
            sa.Column('plan_renovacion', sa.DateTime(timezone=True), nullable=True),
            sa.Column('fecha_compra', sa.DateTime(timezone=True), nullable=True),
            sa.Column('traslados_mes_actual', sa.Integer(), nullable=False),
            sa.Column('mes_contador', sa.String(length=7), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_perfiles_id'), 'perfiles', ['id'], unique=False)
        op.create_index(op.f('ix_perfiles_email'), 'perfiles', ['email'], unique=True)
        op.create_index(op.f('ix_perfiles_empresa_id'), 'perfiles', ['empresa_id'], unique=False)

    if not table_exists('traslados'):
        op.create_table('traslados',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('empresa_id', sa.Integer(), nullable=False),
            sa.Column('chofer_id', sa.Integer(), nullable=True),
            sa.Column('marca_modelo', sa.String(), nullable=False),
            sa.Column('matricula', sa.String(), nullable=True),
            sa.Column('es_0km', sa.Boolean(), nullable=False),
            sa.Column('importe_total', sa.Float(), nullable=True),
            sa.Column('observaciones', sa.Text(), nullable=True),
            sa.Column('desde', sa.String(), nullable=True),
            sa.Column('hasta', sa.String(), nullable=True),
            sa.Column('estado', sa.String(), nullable=False),
            sa.Column('estado_pago', sa.String(), nullable=False),
            sa.Column('foto_frontal', sa.String(), nullable=True),
            sa.Column('foto_lateral', sa.String(), nullable=True),
            sa.Column('foto_trasera', sa.String(), nullable=True),
            sa.Column('foto_interior', sa.String(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ),
            sa.ForeignKeyConstraint(['chofer_id'], ['perfiles.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_traslados_empresa_estado', 'traslados', ['empresa_id', 'estado'], unique=False)
        op.create_index(op.f('ix_traslados_id'), 'traslados', ['id'], unique=False)
        op.create_index(op.f('ix_traslados_empresa_id'), 'traslados', ['empresa_id'], unique=False)
        op.create_index(op.f('ix_traslados_chofer_id'), 'traslados', ['chofer_id'], unique=False)
        op.create_index(op.f('ix_traslados_created_at'), 'traslados', ['created_at'], unique=False)

    if not table_exists('gastos'):
        op.create_table('gastos',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('empresa_id', sa.Integer(), nullable=False),
            sa.Column('usuario_id', sa.Integer(), nullable=False),
            sa.Column('tipo', sa.String(), nullable=False),
            sa.Column('importe', sa.Float(), nullable=False),
            sa.Column('descripcion', sa.Text(), nullable=True),
            sa.Column('fecha', sa.Date(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ),
            sa.ForeignKeyConstraint(['usuario_id'], ['perfiles.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_gastos_id'), 'gastos', ['id'], unique=False)
        op.create_index(op.f('ix_gastos_empresa_id'), 'gastos', ['empresa_id'], unique=False)
        op.create_index(op.f('ix_gastos_usuario_id'), 'gastos', ['usuario_id'], unique=False)

    if not table_exists('invitaciones'):
        op.create_table('invitaciones',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('empresa_id', sa.Integer(), nullable=False),
            sa.Column('codigo', sa.String(length=16), nullable=False),
            sa.Column('usado', sa.Boolean(), nullable=False),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_invitaciones_id'), 'invitaciones', ['id'], unique=False)
        op.create_index(op.f('ix_invitaciones_codigo'), 'invitaciones', ['codigo'], unique=True)
        op.create_index(op.f('ix_invitaciones_empresa_id'), 'invitaciones', ['empresa_id'], unique=False)

    if not table_exists('pagos_procesados'):
        op.create_table('pagos_procesados',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('payment_id', sa.String(), nullable=False),
            sa.Column('perfil_id', sa.Integer(), nullable=False),
            sa.Column('plan', sa.String(), nullable=False),
            sa.Column('processed_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['perfil_id'], ['perfiles.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_pagos_procesados_id'), 'pagos_procesados', ['id'], unique=False)
        op.create_index(op.f('ix_pagos_procesados_payment_id'), 'pagos_procesados', ['payment_id'], unique=True)
        op.create_index(op.f('ix_pagos_procesados_perfil_id'), 'pagos_procesados', ['perfil_id'], unique=False)


def downgrade() -> None:
    op.drop_table('pagos_procesados')
    op.drop_table('invitaciones')
    op.drop_table('gastos')
    op.drop_table('traslados')
    op.drop_table('perfiles')
    op.drop_table('empresas')
