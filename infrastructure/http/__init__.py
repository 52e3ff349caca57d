"""Acesso HTTP ao serviço de negociação."""
from .requests_gateway import RequestsOrderBookGateway

__all__ = ['RequestsOrderBookGateway']
