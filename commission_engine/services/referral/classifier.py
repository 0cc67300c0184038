"""
Referral recency classifier.

Applies the external rule to the referrals of one subject:
- the newest referral is always internal
- any other referral is external when it is at least `threshold_days`
  older than the newest one, internal otherwise

Each subject is classified in one transaction holding a lock on the subject
row and its referrals, so concurrent hand-offs on the same subject are
serialized by the database.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commission_engine.config.settings import settings
from commission_engine.models.enums import SubjectType
from commission_engine.models.referral import Referral
from commission_engine.repositories.referral_repository import (
    ReferralRepository,
)
from commission_engine.utils.datetime_utils import as_utc, days_between


@dataclass
class ClassificationResult:
    """Change summary of one classification run."""

    subject_type: str
    subject_id: int
    total: int = 0
    most_recent_id: int | None = None
    marked_external: list[int] = field(default_factory=list)
    reverted_internal: list[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.marked_external or self.reverted_internal)

    @property
    def message(self) -> str:
        if self.total == 0:
            return "No referrals to process"
        if not self.changed:
            return "All referrals are correctly marked"
        parts = []
        if self.marked_external:
            parts.append(
                f"marked {len(self.marked_external)} referral(s) as external"
            )
        if self.reverted_internal:
            parts.append(
                f"reverted {len(self.reverted_internal)} referral(s) "
                f"to internal"
            )
        return ", ".join(parts).capitalize()


def plan_classification(
    subject_type: str,
    subject_id: int,
    referrals: Sequence[Referral],
    threshold_days: int,
) -> ClassificationResult:
    """
    Decide which referrals of one subject must change their flag.

    Pure: reads `id`, `date` and `external` and never mutates the rows.
    The anchor is the referral with the greatest (date, id).

    Args:
        subject_type: "property" or "lead"
        subject_id: Subject ID
        referrals: All referrals of the subject, in any order
        threshold_days: Age gap (days) at which a referral becomes external

    Returns:
        Result listing the referrals to flip
    """
    result = ClassificationResult(
        subject_type=str(subject_type),
        subject_id=subject_id,
        total=len(referrals),
    )
    if not referrals:
        return result

    ordered = sorted(
        referrals, key=lambda r: (as_utc(r.date), r.id), reverse=True
    )
    anchor = ordered[0]
    result.most_recent_id = anchor.id
    if anchor.external:
        result.reverted_internal.append(anchor.id)

    for referral in ordered[1:]:
        should_be_external = (
            days_between(anchor.date, referral.date) >= threshold_days
        )
        if should_be_external and not referral.external:
            result.marked_external.append(referral.id)
        elif referral.external and not should_be_external:
            result.reverted_internal.append(referral.id)

    return result


class ReferralClassifier:
    """
    Recency classifier for property and lead referrals.

    Usage:
        classifier = ReferralClassifier(async_session_maker)
        result = await classifier.classify(SubjectType.PROPERTY, 42)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        threshold_days: int | None = None,
        row_locking: bool = True,
    ) -> None:
        """
        Initialize classifier.

        Args:
            session_factory: Factory for the per-subject transactions
            threshold_days: Override of REFERRAL_EXTERNAL_AFTER_DAYS
            row_locking: Read rows with SELECT ... FOR UPDATE
        """
        self.session_factory = session_factory
        self.threshold_days = (
            threshold_days
            if threshold_days is not None
            else settings.referral_external_after_days
        )
        self.row_locking = row_locking

    async def classify(
        self, subject_type: SubjectType | str, subject_id: int
    ) -> ClassificationResult:
        """
        Reclassify one subject in its own transaction.

        Commits on success; on failure nothing of this subject is written
        and the exception propagates.
        """
        async with self.session_factory() as session:
            async with session.begin():
                return await self.classify_in_session(
                    session, subject_type, subject_id
                )

    async def classify_in_session(
        self,
        session: AsyncSession,
        subject_type: SubjectType | str,
        subject_id: int,
    ) -> ClassificationResult:
        """
        Reclassify one subject inside a caller-owned transaction.

        The subject row is locked before its referrals are read; the caller
        commits or rolls back.
        """
        repo = ReferralRepository(session)
        await repo.lock_subject(
            subject_type, subject_id, for_update=self.row_locking
        )
        referrals = await repo.list_by_subject(
            subject_type, subject_id, for_update=self.row_locking
        )

        result = plan_classification(
            subject_type, subject_id, referrals, self.threshold_days
        )
        if result.total == 0:
            logger.debug(f"{subject_type} {subject_id}: no referrals")
            return result

        await repo.set_external_bulk(result.marked_external, True)
        await repo.set_external_bulk(result.reverted_internal, False)

        if result.changed:
            logger.info(
                f"{subject_type} {subject_id}: {result.message} "
                f"(external={result.marked_external}, "
                f"internal={result.reverted_internal}, "
                f"anchor={result.most_recent_id})"
            )
        else:
            logger.debug(
                f"{subject_type} {subject_id}: {result.total} referral(s) "
                f"unchanged"
            )
        return result
