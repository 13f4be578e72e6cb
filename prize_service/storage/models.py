from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prize_service.storage.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PrizeRuleRecord(Base):
    __tablename__ = "prize_rules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    config: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)


class Payout(Base):
    __tablename__ = "payouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    match_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    # Plain column: history outlives the rule it was calculated with.
    rule_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    winners_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="distributed")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    winners: Mapped[list["PayoutWinner"]] = relationship(
        back_populates="payout",
        cascade="all, delete-orphan",
        order_by="PayoutWinner.id",
    )


class PayoutWinner(Base):
    __tablename__ = "payout_winners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    payout_id: Mapped[int] = mapped_column(ForeignKey("payouts.id"), nullable=False, index=True)
    uid: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(128), nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    breakdown: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)

    payout: Mapped[Payout] = relationship(back_populates="winners")
