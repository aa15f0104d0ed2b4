from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from certichain.db.base import Base


class LedgerEventRow(Base):
    __tablename__ = "ledger_events"
    __table_args__ = (UniqueConstraint("tx_hash", "log_index", name="uq_ledger_events_tx_hash_log_index"),)
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(40), index=True)
    record_id: Mapped[int | None] = mapped_column(BigInteger, index=True, nullable=True)
    issuer: Mapped[str | None] = mapped_column(String(42), nullable=True)
    subject: Mapped[str | None] = mapped_column(String(42), nullable=True)
    institution: Mapped[str | None] = mapped_column(String(42), nullable=True)
    commitment: Mapped[str | None] = mapped_column(String(66), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    block_number: Mapped[int] = mapped_column(BigInteger, index=True)
    tx_hash: Mapped[str] = mapped_column(String(66))
    log_index: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
