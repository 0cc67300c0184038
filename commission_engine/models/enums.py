"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class SubjectType(StrEnum):
    """Kind of record a referral is attached to."""

    PROPERTY = "property"
    LEAD = "lead"


class ReferralKind(StrEnum):
    """Who gave the referral."""

    EMPLOYEE = "employee"
    CUSTOM = "custom"


class ReferralStatus(StrEnum):
    """Review state of a referral."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
