"""Initial schema: namespaces, documents, tags, document tags, attribute schemas

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create namespaces table
    op.create_table(
        'namespaces',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('modified_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.UniqueConstraint('name', name='uq_namespaces_name'),
    )

    # Create documents table
    op.create_table(
        'documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('namespace_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('checksum_sha256', sa.String(64), nullable=False),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('attributes', postgresql.JSONB(), nullable=True),
        sa.Column('attributes_version', sa.BigInteger(), nullable=True),
        sa.Column('attributes_metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('modified_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['namespace_id'], ['namespaces.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('namespace_id', 'checksum_sha256', name='uq_documents_namespace_checksum'),
    )
    op.create_index('ix_documents_namespace_id', 'documents', ['namespace_id'])
    op.create_index('idx_documents_created_at', 'documents', ['created_at'])

    # Create tags table
    op.create_table(
        'tags',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('namespace_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('path', sa.String(255), nullable=False),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('color', sa.String(7), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('modified_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['namespace_id'], ['namespaces.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_id'], ['tags.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('namespace_id', 'path', name='uq_tags_namespace_path'),
    )
    op.create_index('ix_tags_namespace_id', 'tags', ['namespace_id'])
    op.create_index('idx_tags_parent_id', 'tags', ['parent_id'])

    # Create document_tags table
    op.create_table(
        'document_tags',
        sa.Column('document_id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('tag_id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('attributes', postgresql.JSONB(), nullable=True),
        sa.Column('attributes_version', sa.BigInteger(), nullable=True),
        sa.Column('attributes_metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('modified_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_document_tags_tag_id', 'document_tags', ['tag_id'])

    # Create attribute_schemas table
    op.create_table(
        'attribute_schemas',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('namespace_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tag_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('scope_key', sa.String(64), nullable=False),
        sa.Column('version', sa.BigInteger(), nullable=False),
        sa.Column('json_schema', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['namespace_id'], ['namespaces.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('namespace_id', 'scope_key', 'version', name='uq_attribute_schemas_scope_version'),
    )
    op.create_index('ix_attribute_schemas_tag_id', 'attribute_schemas', ['tag_id'])

    # GIN indexes for attribute queries
    op.execute('CREATE INDEX ix_document_tags_attributes ON document_tags USING gin (attributes)')
    op.execute('CREATE INDEX ix_documents_attributes ON documents USING gin (attributes)')


def downgrade() -> None:
    op.execute('DROP INDEX IF EXISTS ix_documents_attributes')
    op.execute('DROP INDEX IF EXISTS ix_document_tags_attributes')

    op.drop_index('ix_attribute_schemas_tag_id', table_name='attribute_schemas')
    op.drop_table('attribute_schemas')

    op.drop_index('ix_document_tags_tag_id', table_name='document_tags')
    op.drop_table('document_tags')

    op.drop_index('idx_tags_parent_id', table_name='tags')
    op.drop_index('ix_tags_namespace_id', table_name='tags')
    op.drop_table('tags')

    op.drop_index('idx_documents_created_at', table_name='documents')
    op.drop_index('ix_documents_namespace_id', table_name='documents')
    op.drop_table('documents')

    op.drop_table('namespaces')
