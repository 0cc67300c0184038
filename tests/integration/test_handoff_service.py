"""
Integration tests for referral hand-offs.

Tests cover:
- Recording a hand-off with name lookup and reclassification
- Validation and missing subjects
- Status changes and admin deletion
- Concurrent hand-offs on one subject
"""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from commission_engine.config.business_constants import UNKNOWN_EMPLOYEE_NAME
from commission_engine.repositories.referral_repository import ReferralRepository
from commission_engine.services.referral import (
    ReferralClassifier,
    ReferralHandoffService,
)
from commission_engine.utils.datetime_utils import days_between, utc_now
from commission_engine.utils.exceptions import NotFoundError, ValidationError


DAY_0 = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)


def day(n: float) -> datetime:
    return DAY_0 + timedelta(days=n)


async def flags(seed, *referrals) -> list[bool]:
    return [(await seed.reload(r.id)).external for r in referrals]


@pytest.fixture
def service(session, session_factory):
    classifier = ReferralClassifier(session_factory, row_locking=False)
    return ReferralHandoffService(session, classifier=classifier)


class TestRecordHandoff:
    """Test recording hand-offs."""

    @pytest.mark.asyncio
    async def test_name_looked_up_and_previous_marked_external(self, seed, service):
        first = await seed.user("First Agent")
        second = await seed.user("Second Agent")
        prop = await seed.property(first.id)
        old = await seed.referral(prop.id, first.id, day(0))

        result = await service.record_handoff("property", prop.id, second.id, date=day(45))

        assert result.referral.name == "Second Agent"
        assert result.referral.kind == "employee"
        assert result.referral.external is False
        assert result.classification.marked_external == [old.id]
        assert (await seed.reload(old.id)).external is True

    @pytest.mark.asyncio
    async def test_recent_previous_referral_stays_internal(self, seed, service):
        agent = await seed.user("Agent")
        prop = await seed.property(agent.id)
        old = await seed.referral(prop.id, agent.id, day(0))

        result = await service.record_handoff("property", prop.id, agent.id, date=day(10))

        assert not result.classification.changed
        assert (await seed.reload(old.id)).external is False

    @pytest.mark.asyncio
    async def test_unknown_employee_name(self, seed, service):
        lead = await seed.lead(agent_id=None)

        result = await service.record_handoff("lead", lead.id, 424242)

        assert result.referral.name == UNKNOWN_EMPLOYEE_NAME
        assert result.referral.subject_type == "lead"

    @pytest.mark.asyncio
    async def test_custom_referrer(self, seed, service):
        prop = await seed.property(None)

        result = await service.record_handoff(
            "property", prop.id, None, name="Walk-in Partner", kind="custom"
        )

        assert result.referral.referrer_id is None
        assert result.referral.name == "Walk-in Partner"

    @pytest.mark.asyncio
    async def test_default_date_is_now(self, seed, service):
        agent = await seed.user("Agent")
        prop = await seed.property(agent.id)

        result = await service.record_handoff("property", prop.id, agent.id)

        stored = (await seed.reload(result.referral.id)).date
        assert abs(days_between(utc_now(), stored)) < 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"subject_type": "building", "subject_id": 1, "referrer_id": 1},
            {"subject_type": "property", "subject_id": 1, "referrer_id": None},
            {"subject_type": "property", "subject_id": 1, "referrer_id": None, "kind": "custom"},
            {"subject_type": "property", "subject_id": 1, "referrer_id": 1, "kind": "robot"},
            {"subject_type": "property", "subject_id": 0, "referrer_id": 1},
        ],
    )
    async def test_validation(self, service, kwargs):
        with pytest.raises(ValidationError):
            await service.record_handoff(**kwargs)

    @pytest.mark.asyncio
    async def test_missing_subject(self, seed, service):
        agent = await seed.user("Agent")
        with pytest.raises(NotFoundError):
            await service.record_handoff("property", 999, agent.id)


class TestStatusAndDeletion:
    """Test status changes and admin deletion."""

    @pytest.mark.asyncio
    async def test_reject_referral(self, seed, service):
        agent = await seed.user("Agent")
        prop = await seed.property(agent.id)
        ref = await seed.referral(prop.id, agent.id, day(0))

        updated = await service.set_status(ref.id, "rejected")

        assert updated.status == "rejected"
        assert (await seed.reload(ref.id)).status == "rejected"

    @pytest.mark.asyncio
    async def test_invalid_status(self, seed, service):
        with pytest.raises(ValidationError):
            await service.set_status(1, "maybe")

    @pytest.mark.asyncio
    async def test_status_of_missing_referral(self, service):
        with pytest.raises(NotFoundError):
            await service.set_status(999, "confirmed")

    @pytest.mark.asyncio
    async def test_delete_newest_restores_previous(self, seed, service):
        agent = await seed.user("Agent")
        prop = await seed.property(agent.id)
        old = await seed.referral(prop.id, agent.id, day(0), external=True)
        newest = await seed.referral(prop.id, agent.id, day(40))

        result = await service.delete_referral(newest.id)

        assert result.referral.id == newest.id
        assert result.classification.reverted_internal == [old.id]
        assert await seed.reload(newest.id) is None
        assert (await seed.reload(old.id)).external is False

    @pytest.mark.asyncio
    async def test_delete_missing(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_referral(999)


class TestConcurrentHandoffs:
    """Test hand-offs on one subject from separate sessions."""

    @pytest.mark.asyncio
    async def test_simultaneous_handoffs_see_each_other(self, seed, session_factory):
        first = await seed.user("First Agent")
        second = await seed.user("Second Agent")
        prop = await seed.property(first.id)
        existing = await seed.referral(prop.id, first.id, day(0))

        async def hand_off(referrer_id, when):
            async with session_factory() as session:
                service = ReferralHandoffService(
                    session, classifier=ReferralClassifier(session_factory)
                )
                return await service.record_handoff(
                    "property", prop.id, referrer_id, date=when
                )

        newest, backdated = await asyncio.gather(
            hand_off(first.id, day(45)),
            hand_off(second.id, day(10)),
        )

        # Whichever commits last must classify against the other's row
        assert await flags(seed, existing, backdated.referral, newest.referral) == [
            True,
            True,
            False,
        ]

    @pytest.mark.asyncio
    async def test_subject_locked_before_insert_and_before_read(
        self, seed, session, session_factory
    ):
        agent = await seed.user("Agent")
        prop = await seed.property(agent.id)
        calls = []

        lock_subject = ReferralRepository.lock_subject
        create_referral = ReferralRepository.create_referral
        list_by_subject = ReferralRepository.list_by_subject

        async def record_lock(self, *args, **kwargs):
            calls.append(("lock", kwargs.get("for_update")))
            return await lock_subject(self, *args, **kwargs)

        async def record_create(self, *args, **kwargs):
            calls.append(("create", None))
            return await create_referral(self, *args, **kwargs)

        async def record_list(self, *args, **kwargs):
            calls.append(("list", kwargs.get("for_update")))
            return await list_by_subject(self, *args, **kwargs)

        service = ReferralHandoffService(
            session, classifier=ReferralClassifier(session_factory)
        )
        with (
            patch.object(ReferralRepository, "lock_subject", record_lock),
            patch.object(ReferralRepository, "create_referral", record_create),
            patch.object(ReferralRepository, "list_by_subject", record_list),
        ):
            await service.record_handoff("property", prop.id, agent.id, date=day(1))

        assert calls == [
            ("lock", True),
            ("create", None),
            ("lock", True),
            ("list", True),
        ]
