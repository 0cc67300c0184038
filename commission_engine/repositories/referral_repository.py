"""
Referral repository.

Data access layer for the referral ledger. Pure storage: no business rules,
the recency classifier is responsible for keeping `external` correct.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.enums import ReferralKind, SubjectType
from commission_engine.models.lead import Lead
from commission_engine.models.listing import Property
from commission_engine.models.referral import Referral
from commission_engine.repositories.base import BaseRepository
from commission_engine.utils.datetime_utils import utc_now


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def create_referral(
        self,
        subject_type: SubjectType | str,
        subject_id: int,
        referrer_id: int | None,
        name: str | None,
        kind: ReferralKind | str = ReferralKind.EMPLOYEE,
        date: datetime | None = None,
    ) -> Referral:
        """
        Insert a referral. New referrals always start internal.

        Args:
            subject_type: "property" or "lead"
            subject_id: Property or lead ID
            referrer_id: Employee ID, None for custom referrers
            name: Referrer display name
            kind: "employee" or "custom"
            date: Referral date (defaults to now)

        Returns:
            Created referral
        """
        return await self.create(
            subject_type=str(subject_type),
            subject_id=subject_id,
            referrer_id=referrer_id,
            name=name,
            kind=str(kind),
            date=date or utc_now(),
            external=False,
        )

    async def lock_subject(
        self,
        subject_type: SubjectType | str,
        subject_id: int,
        for_update: bool = True,
    ) -> bool:
        """
        Lock the property or lead a referral set belongs to.

        Writers on one subject serialize on this row, so a transaction that
        waited here reads every referral committed before it.

        Args:
            subject_type: "property" or "lead"
            subject_id: Property or lead ID
            for_update: Take the row lock (SELECT ... FOR UPDATE)

        Returns:
            True if the subject exists
        """
        model = Property if str(subject_type) == SubjectType.PROPERTY else Lead
        stmt = select(model.id).where(model.id == subject_id)
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_by_subject(
        self,
        subject_type: SubjectType | str,
        subject_id: int,
        for_update: bool = False,
    ) -> list[Referral]:
        """
        Get all referrals of a subject, newest first.

        Ties on date are ordered by ID descending so the most recently
        inserted row is the anchor.

        Args:
            subject_type: "property" or "lead"
            subject_id: Property or lead ID
            for_update: Lock the rows (SELECT ... FOR UPDATE)

        Returns:
            List of referrals ordered by date descending
        """
        stmt = (
            select(Referral)
            .where(
                Referral.subject_type == str(subject_type),
                Referral.subject_id == subject_id,
            )
            .order_by(Referral.date.desc(), Referral.id.desc())
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_referrer(self, referrer_id: int) -> list[Referral]:
        """
        Get all referrals given by an employee, newest first.

        Args:
            referrer_id: Employee ID

        Returns:
            List of referrals
        """
        stmt = (
            select(Referral)
            .where(Referral.referrer_id == referrer_id)
            .order_by(Referral.date.desc(), Referral.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_most_recent_internal(
        self, subject_type: SubjectType | str, subject_id: int
    ) -> Referral | None:
        """
        Get the newest internal referral of a subject.

        Args:
            subject_type: "property" or "lead"
            subject_id: Property or lead ID

        Returns:
            Referral or None
        """
        stmt = (
            select(Referral)
            .where(
                Referral.subject_type == str(subject_type),
                Referral.subject_id == subject_id,
                Referral.external.is_(False),
            )
            .order_by(Referral.date.desc(), Referral.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_external(
        self, referral_id: int, external: bool
    ) -> Referral | None:
        """
        Set the external flag of one referral.

        Args:
            referral_id: Referral ID
            external: New flag value

        Returns:
            Updated referral or None if not found
        """
        return await self.update(referral_id, external=external)

    async def set_external_bulk(
        self, referral_ids: list[int], external: bool
    ) -> int:
        """
        Set the external flag of many referrals in one statement.

        Args:
            referral_ids: Referral IDs
            external: New flag value

        Returns:
            Number of rows updated
        """
        if not referral_ids:
            return 0
        stmt = (
            update(Referral)
            .where(Referral.id.in_(referral_ids))
            .values(external=external, updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount or 0

    async def delete_referral(self, referral_id: int) -> Referral | None:
        """
        Delete a referral (admin action).

        Args:
            referral_id: Referral ID

        Returns:
            Deleted referral or None if not found
        """
        return await self.delete(referral_id)

    async def get_referral_stats(self, referrer_id: int) -> dict[str, Any]:
        """
        Get referral statistics for an employee in a single query.

        Args:
            referrer_id: Employee ID

        Returns:
            Dict with total/internal/external counts and first/last dates
        """
        stmt = select(
            func.count(Referral.id).label("total"),
            func.coalesce(
                func.sum(case((Referral.external.is_(False), 1), else_=0)), 0
            ).label("internal"),
            func.coalesce(
                func.sum(case((Referral.external.is_(True), 1), else_=0)), 0
            ).label("external"),
            func.min(Referral.date).label("first_date"),
            func.max(Referral.date).label("last_date"),
        ).where(Referral.referrer_id == referrer_id)

        row = (await self.session.execute(stmt)).one()

        return {
            "total_referrals": row.total or 0,
            "internal_referrals": int(row.internal or 0),
            "external_referrals": int(row.external or 0),
            "first_referral_date": row.first_date,
            "last_referral_date": row.last_date,
        }
