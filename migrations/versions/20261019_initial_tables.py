# migrations/versions/20261019_initial_tables.py
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_initial_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("actor", sa.String(160), nullable=False),
        sa.Column("entity", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(80), nullable=True),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("outcome", sa.String(40), nullable=False),
        sa.Column("detail_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
    )

    op.create_table(
        "idempotency_keys",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("key", sa.String(80), nullable=False),
        sa.Column("signature", sa.String(80), nullable=False),
        sa.Column("response_body", sa.LargeBinary(), nullable=False),
        sa.Column("response_mime", sa.String(80), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_idempotency_keys"),
        sa.UniqueConstraint("key", "signature", name="uq_idempotency_keys_key_signature"),
    )
    op.create_index("ix_idempotency_keys_key", "idempotency_keys", ["key"])
    op.create_index("ix_idempotency_keys_signature", "idempotency_keys", ["signature"])

    op.create_table(
        "ledger_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(40), nullable=False),
        sa.Column("record_id", sa.BigInteger(), nullable=True),
        sa.Column("issuer", sa.String(42), nullable=True),
        sa.Column("subject", sa.String(42), nullable=True),
        sa.Column("institution", sa.String(42), nullable=True),
        sa.Column("commitment", sa.String(66), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("block_number", sa.BigInteger(), nullable=False),
        sa.Column("tx_hash", sa.String(66), nullable=False),
        sa.Column("log_index", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_ledger_events"),
        sa.UniqueConstraint("tx_hash", "log_index", name="uq_ledger_events_tx_hash_log_index"),
    )
    op.create_index("ix_ledger_events_kind", "ledger_events", ["kind"])
    op.create_index("ix_ledger_events_record_id", "ledger_events", ["record_id"])
    op.create_index("ix_ledger_events_block_number", "ledger_events", ["block_number"])


def downgrade():
    op.drop_index("ix_ledger_events_block_number", table_name="ledger_events")
    op.drop_index("ix_ledger_events_record_id", table_name="ledger_events")
    op.drop_index("ix_ledger_events_kind", table_name="ledger_events")
    op.drop_table("ledger_events")
    op.drop_index("ix_idempotency_keys_signature", table_name="idempotency_keys")
    op.drop_index("ix_idempotency_keys_key", table_name="idempotency_keys")
    op.drop_table("idempotency_keys")
    op.drop_table("audit_logs")
