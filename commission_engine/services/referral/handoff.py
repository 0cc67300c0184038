"""
Referral hand-off service.

Records a referral when a subject is handed to an employee and keeps the
subject's external flags correct in the same transaction.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import UNKNOWN_EMPLOYEE_NAME
from commission_engine.config.database import create_session_factory
from commission_engine.models.enums import (
    ReferralKind,
    ReferralStatus,
    SubjectType,
)
from commission_engine.models.referral import Referral
from commission_engine.repositories.referral_repository import (
    ReferralRepository,
)
from commission_engine.repositories.user_repository import UserRepository
from commission_engine.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)
from commission_engine.services.referral.classifier import (
    ClassificationResult,
    ReferralClassifier,
)
from commission_engine.utils.datetime_utils import utc_now
from commission_engine.utils.exceptions import NotFoundError, ValidationError


@dataclass
class HandoffResult:
    """Referral touched by a hand-off operation and the reclassification."""

    referral: Referral
    classification: ClassificationResult


def _subject_type(value: SubjectType | str) -> SubjectType:
    try:
        return SubjectType(value)
    except ValueError as exc:
        raise ValidationError(
            f"Invalid subject type: {value!r}. "
            f"Expected one of: {', '.join(t.value for t in SubjectType)}"
        ) from exc


class ReferralHandoffService(BaseService):
    """
    Referral hand-off service.

    Every operation is one transaction: the ledger write and the
    reclassification of the subject commit together or not at all.
    """

    def __init__(
        self,
        session: AsyncSession,
        classifier: ReferralClassifier | None = None,
    ) -> None:
        """
        Initialize hand-off service.

        Args:
            session: Async database session
            classifier: Recency classifier (built from the session's
                engine when omitted)
        """
        super().__init__(session)
        self.referral_repo = ReferralRepository(session)
        self.user_repo = UserRepository(session)
        self.classifier = classifier or ReferralClassifier(
            create_session_factory(session.bind)
        )

    async def _ensure_subject(
        self, subject_type: SubjectType, subject_id: int
    ) -> None:
        # Serializes hand-offs on one subject; held until commit
        exists = await self.referral_repo.lock_subject(
            subject_type, subject_id, for_update=self.classifier.row_locking
        )
        if not exists:
            raise NotFoundError(f"{subject_type} {subject_id} not found")

    @log_operation
    @transaction
    async def record_handoff(
        self,
        subject_type: SubjectType | str,
        subject_id: int,
        referrer_id: int | None,
        name: str | None = None,
        kind: ReferralKind | str = ReferralKind.EMPLOYEE,
        date: datetime | None = None,
    ) -> HandoffResult:
        """
        Record a referral hand-off and reclassify the subject.

        Args:
            subject_type: "property" or "lead"
            subject_id: Property or lead ID
            referrer_id: Employee receiving the subject (None for custom)
            name: Display name (looked up from users for employees)
            kind: "employee" or "custom"
            date: Hand-off time (defaults to now)

        Returns:
            The new referral and the classification result

        Raises:
            ValidationError: Bad subject type / kind or missing referrer
            NotFoundError: Subject does not exist
        """
        subject = _subject_type(subject_type)
        try:
            kind = ReferralKind(kind)
        except ValueError as exc:
            raise ValidationError(f"Invalid referral kind: {kind!r}") from exc

        if not subject_id:
            raise ValidationError("subject_id is required")
        if kind == ReferralKind.EMPLOYEE and referrer_id is None:
            raise ValidationError("referrer_id is required for employee referrals")
        if kind == ReferralKind.CUSTOM and not name:
            raise ValidationError("name is required for custom referrals")

        await self._ensure_subject(subject, subject_id)

        if name is None and referrer_id is not None:
            name = (
                await self.user_repo.get_name(referrer_id)
                or UNKNOWN_EMPLOYEE_NAME
            )

        referral = await self.referral_repo.create_referral(
            subject_type=subject,
            subject_id=subject_id,
            referrer_id=referrer_id,
            name=name,
            kind=kind,
            date=date or utc_now(),
        )
        classification = await self.classifier.classify_in_session(
            self.session, subject, subject_id
        )
        await self.session.refresh(referral)

        self.logger.info(
            f"Recorded {kind} referral {referral.id} on {subject} "
            f"{subject_id} by referrer {referrer_id}: "
            f"{classification.message}"
        )
        return HandoffResult(referral=referral, classification=classification)

    @transaction
    async def set_status(
        self, referral_id: int, status: ReferralStatus | str
    ) -> Referral:
        """
        Confirm, reject or reset a referral.

        Rejected referrals stay in the ledger (and in classification) but
        never earn commission.

        Raises:
            ValidationError: Unknown status
            NotFoundError: Referral does not exist
        """
        try:
            status = ReferralStatus(status)
        except ValueError as exc:
            raise ValidationError(
                f"Invalid referral status: {status!r}"
            ) from exc

        referral = await self.referral_repo.update(
            referral_id, status=status.value
        )
        if referral is None:
            raise NotFoundError(f"Referral {referral_id} not found")

        self.logger.info(f"Referral {referral_id} set to {status}")
        return referral

    @log_operation
    @transaction
    async def delete_referral(self, referral_id: int) -> HandoffResult:
        """
        Delete a referral (admin action) and reclassify its subject.

        Returns:
            The deleted referral and the classification of what remains

        Raises:
            NotFoundError: Referral does not exist
        """
        referral = await self.referral_repo.delete_referral(referral_id)
        if referral is None:
            raise NotFoundError(f"Referral {referral_id} not found")

        classification = await self.classifier.classify_in_session(
            self.session, referral.subject_type, referral.subject_id
        )
        self.logger.info(
            f"Deleted referral {referral_id} on {referral.subject_type} "
            f"{referral.subject_id}: {classification.message}"
        )
        return HandoffResult(referral=referral, classification=classification)
