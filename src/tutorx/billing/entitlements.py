"""Upgrade approval port and the simulated payment gateway."""

from typing import Protocol

import structlog

from tutorx.models.profile import SubscriptionTier

logger = structlog.get_logger()


class EntitlementApprover(Protocol):
    async def approve_upgrade(self, email: str, target_tier: SubscriptionTier) -> bool: ...


class SimulatedApprover:
    """Stands in for a payment provider.

    Args:
        approve: When False every upgrade is declined.
    """

    def __init__(self, approve: bool = True):
        self.approve = approve

    async def approve_upgrade(self, email: str, target_tier: SubscriptionTier) -> bool:
        logger.info(
            "upgrade_approval",
            email=email,
            target_tier=target_tier.value,
            approved=self.approve,
        )
        return self.approve
