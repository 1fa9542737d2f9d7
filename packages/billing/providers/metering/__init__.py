"""Meter gateways - forward consumption to the external billing meter."""

from packages.billing.providers.metering.interface import MeterGatewayInterface
from packages.billing.providers.metering.factory import get_meter_gateway

__all__ = [
    "MeterGatewayInterface",
    "get_meter_gateway",
]
