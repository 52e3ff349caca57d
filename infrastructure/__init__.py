"""Camada de infraestrutura."""

# HTTP
from .http.requests_gateway import RequestsOrderBookGateway

# Messaging
from .messaging.event_bus import LocalEventBus

__all__ = [
    'RequestsOrderBookGateway',
    'LocalEventBus'
]
