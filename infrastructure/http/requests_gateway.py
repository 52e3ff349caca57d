#infrastructure/http/requests_gateway.py
"""Gateway HTTP baseado em requests - executa as chamadas fora do loop."""
import asyncio
import logging
from typing import Any, Optional

import requests

from core.contracts.gateway import IOrderBookGateway, HttpReply, TransportError
from core.entities.order import OrderRequest

logger = logging.getLogger(__name__)


class RequestsOrderBookGateway(IOrderBookGateway):
    """
    Implementação de IOrderBookGateway usando uma requests.Session.
    
    Cada chamada bloqueante roda em uma thread de trabalho via
    asyncio.to_thread, de modo que o loop da interface só é retomado quando a
    resposta chega. Nenhum estado é alterado aqui: o gateway apenas devolve
    status e corpo.
    """

    __slots__ = ['base_url', 'timeout', 'session', '_request_count']

    def __init__(self, base_url: str, timeout: float = 5.0,
                 session: Optional[requests.Session] = None):
        """
        Inicializa o gateway.
        
        Args:
            base_url: URL base do serviço (ex: http://localhost:8080)
            timeout: Timeout em segundos de cada requisição
            session: Sessão requests a reutilizar (uma nova é criada se None)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        self._request_count = 0
        
        logger.info(f"Gateway HTTP configurado - base: {self.base_url}, timeout: {self.timeout}s")

    async def fetch_book(self, depth: int) -> HttpReply:
        return await self._call('GET', '/book', params={'depth': depth})

    async def post_order(self, request: OrderRequest, depth: int) -> HttpReply:
        return await self._call('POST', '/orders', params={'depth': depth},
                                json=request.to_payload())

    async def cancel_order(self, order_id: int, depth: int) -> HttpReply:
        return await self._call('DELETE', f'/orders/{order_id}', params={'depth': depth})

    async def fetch_trades(self, limit: int) -> HttpReply:
        return await self._call('GET', '/trades', params={'limit': limit})

    async def check_health(self) -> HttpReply:
        return await self._call('GET', '/health')

    async def _call(self, method: str, path: str, **kwargs: Any) -> HttpReply:
        return await asyncio.to_thread(self._request, method, path, **kwargs)

    def _request(self, method: str, path: str, **kwargs: Any) -> HttpReply:
        """Executa a requisição (bloqueante) e converte falhas de transporte."""
        url = f"{self.base_url}{path}"
        self._request_count += 1
        
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            logger.debug(f"Timeout em {method} {url}: {e}")
            raise TransportError(f"Timeout após {self.timeout}s") from e
        except requests.RequestException as e:
            logger.debug(f"Erro de rede em {method} {url}: {e}")
            raise TransportError(str(e)) from e
        
        logger.debug(f"{method} {url} -> {response.status_code}")
        return HttpReply(status=response.status_code, body=response.text)

    def close(self) -> None:
        """Fecha a sessão HTTP."""
        self.session.close()
        logger.info(f"Gateway HTTP encerrado após {self._request_count} requisições")
