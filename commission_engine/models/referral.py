"""
Referral model.

Ledger of referral hand-offs on properties and leads. The engine only ever
changes the `external` flag, and only through the recency classifier.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from commission_engine.models.base import Base
from commission_engine.models.enums import (
    ReferralKind,
    ReferralStatus,
    SubjectType,
)


class Referral(Base):
    """
    Referral entity.

    One row per hand-off of a subject (property or lead) by a referrer:
    - The newest referral on a subject is always internal
    - Older referrals become external once they are 30+ days older
      than the newest one, and revert when a newer referral closes the gap

    Attributes:
        id: Primary key
        subject_type: "property" or "lead"
        subject_id: ID of the property or lead
        referrer_id: Employee who gave the referral (None for custom names)
        name: Display name of the referrer
        kind: "employee" or "custom"
        date: When the referral was made
        external: Lapsed referral flag (higher commission rate)
        status: pending / confirmed / rejected
    """

    __tablename__ = "referrals"
    __table_args__ = (
        Index(
            "idx_referrals_subject_date",
            "subject_type",
            "subject_id",
            "date",
        ),
        Index("idx_referrals_referrer", "referrer_id"),
        CheckConstraint(
            "subject_type IN ('property', 'lead')",
            name="referrals_subject_type_check",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    subject_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SubjectType.PROPERTY.value
    )
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False)
    referrer_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    kind: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReferralKind.EMPLOYEE.value
    )
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    external: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReferralStatus.PENDING.value
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, {self.subject_type}={self.subject_id}, "
            f"referrer_id={self.referrer_id}, date={self.date}, "
            f"external={self.external})>"
        )
