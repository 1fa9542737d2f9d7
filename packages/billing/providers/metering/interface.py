"""
Interface for metering gateways.

A gateway forwards one usage quantity to an external billing meter. The
local ledger stays the source of truth; gateways only report.
"""

from abc import ABC, abstractmethod
from typing import Optional


class MeterGatewayInterface(ABC):
    """Abstract interface for external billing meters."""

    @abstractmethod
    async def create_meter_event(
        self,
        event_name: str,
        customer_ref: str,
        value: int,
        idempotency_key: str,
    ) -> Optional[str]:
        """
        Report usage to the meter.

        Args:
            event_name: Meter event name configured on the billing platform
            customer_ref: Billing platform customer id
            value: Quantity to add
            idempotency_key: Key that makes repeated reports of the same usage safe

        Returns:
            The platform's identifier for the recorded meter event

        Raises:
            Whatever the platform SDK raises; MeteringService decides what
            is retryable.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the meter backend is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass
