#core/factories/infrastructure.py
"""Factory para criar componentes de infraestrutura."""
from typing import Dict, Any

from core.contracts.gateway import IOrderBookGateway
from core.contracts.messaging import ISystemEventBus

from infrastructure.http.requests_gateway import RequestsOrderBookGateway
from infrastructure.messaging.event_bus import LocalEventBus
from config.settings import build_base_url


class InfrastructureFactory:
    """Factory para componentes de infraestrutura."""
    
    def __init__(self, config: Dict[str, Any]):
        self.config = config
    
    def create_event_bus(self) -> ISystemEventBus:
        """Cria barramento de eventos."""
        return LocalEventBus()
    
    def create_gateway(self) -> IOrderBookGateway:
        """Cria o gateway HTTP apontando para server.scheme/host/port."""
        return RequestsOrderBookGateway(
            base_url=build_base_url(self.config),
            timeout=self.config['server'].get('timeout_seconds', 5.0)
        )
