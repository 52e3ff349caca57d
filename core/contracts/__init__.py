"""Contratos (interfaces) do domínio."""

from .gateway import IOrderBookGateway, HttpReply, TransportError
from .messaging import ISystemEventBus

__all__ = [
    'IOrderBookGateway',
    'HttpReply',
    'TransportError',
    'ISystemEventBus'
]
