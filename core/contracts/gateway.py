#core/contracts/gateway.py
"""Interface para o gateway HTTP do serviço de negociação."""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from core.entities.order import OrderRequest


class TransportError(Exception):
    """Nenhuma resposta obtida (DNS, conexão recusada, timeout, abort)."""
    pass


@dataclass(frozen=True)
class HttpReply:
    """Resposta HTTP crua: status e corpo em texto, ainda não decodificado."""
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class IOrderBookGateway(ABC):
    """
    Interface para o serviço remoto de negociação.
    
    Todos os métodos suspendem até a chegada da resposta e levantam
    TransportError quando não há resposta. Status não-2xx NÃO levantam
    exceção: a classificação fica com quem chama.
    """

    @abstractmethod
    async def fetch_book(self, depth: int) -> HttpReply:
        """GET /book?depth=N"""
        pass

    @abstractmethod
    async def post_order(self, request: OrderRequest, depth: int) -> HttpReply:
        """POST /orders?depth=N com o corpo {side, price, qty}."""
        pass

    @abstractmethod
    async def cancel_order(self, order_id: int, depth: int) -> HttpReply:
        """DELETE /orders/{id}?depth=N"""
        pass

    @abstractmethod
    async def fetch_trades(self, limit: int) -> HttpReply:
        """GET /trades?limit=L"""
        pass

    @abstractmethod
    async def check_health(self) -> HttpReply:
        """GET /health"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Fecha a conexão."""
        pass
