"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from commission_engine.models.agent_report import AgentReport
from commission_engine.models.base import Base
from commission_engine.models.enums import (
    ReferralKind,
    ReferralStatus,
    SubjectType,
)

# Collaborator models (read-only for the engine)
from commission_engine.models.lead import Lead, ReferenceSource
from commission_engine.models.listing import Property, Status, Viewing

# Engine-owned models
from commission_engine.models.referral import Referral
from commission_engine.models.system_setting import SystemSetting
from commission_engine.models.user import User

__all__ = [
    # Base
    "Base",
    # Enums
    "ReferralKind",
    "ReferralStatus",
    "SubjectType",
    # Engine-owned models
    "AgentReport",
    "Referral",
    "SystemSetting",
    # Collaborator models
    "Lead",
    "Property",
    "ReferenceSource",
    "Status",
    "User",
    "Viewing",
]
