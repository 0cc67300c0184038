"""
Referral services package.

- classifier: 30-day internal/external recency rule per subject
- handoff: recording hand-offs, status changes and admin deletion
"""

from commission_engine.services.referral.classifier import (
    ClassificationResult,
    ReferralClassifier,
    plan_classification,
)
from commission_engine.services.referral.handoff import (
    HandoffResult,
    ReferralHandoffService,
)


__all__ = [
    "ClassificationResult",
    "HandoffResult",
    "ReferralClassifier",
    "ReferralHandoffService",
    "plan_classification",
]
