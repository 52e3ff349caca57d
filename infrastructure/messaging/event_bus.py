#infrastructure/messaging/event_bus.py
"""Barramento de eventos local, síncrono, no loop da interface."""
import logging
from collections import defaultdict
from typing import Callable, Any, Dict, List
from core.contracts.messaging import ISystemEventBus

logger = logging.getLogger(__name__)


class LocalEventBus(ISystemEventBus):
    """
    Implementação simples de um barramento de eventos em memória.
    
    Os handlers rodam imediatamente dentro de publish(), na mesma thread de
    quem publica. Falha de um handler é registrada e não afeta os demais.
    """

    __slots__ = ['handlers', 'published_count']

    def __init__(self):
        self.handlers: defaultdict[str, List[Callable]] = defaultdict(list)
        self.published_count: Dict[str, int] = defaultdict(int)

    def subscribe(self, event_type: str, handler: Callable) -> None:
        """Inscreve um handler para um tipo de evento (sem duplicar)."""
        if handler in self.handlers[event_type]:
            return
        self.handlers[event_type].append(handler)
        logger.debug(f"Handler {_name_of(handler)} inscrito para o evento '{event_type}'.")

    def publish(self, event_type: str, data: Any = None) -> None:
        """Publica um evento, acionando todos os handlers inscritos."""
        self.published_count[event_type] += 1
        # cópia: um handler pode se desinscrever durante a entrega
        for handler in list(self.handlers.get(event_type, ())):
            try:
                handler(data)
            except Exception as e:
                logger.error(
                    f"Erro ao executar o handler {_name_of(handler)} para o evento '{event_type}': {e}",
                    exc_info=True
                )

    def unsubscribe(self, event_type: str, handler: Callable) -> None:
        """Remove um handler de um tipo de evento."""
        if event_type in self.handlers and handler in self.handlers[event_type]:
            self.handlers[event_type].remove(handler)
            logger.debug(f"Handler {_name_of(handler)} removido do evento '{event_type}'.")

    def clear(self) -> None:
        """Remove todos os handlers (usado no encerramento)."""
        self.handlers.clear()

    def subscriber_count(self, event_type: str) -> int:
        return len(self.handlers.get(event_type, ()))


def _name_of(handler: Callable) -> str:
    return getattr(handler, '__qualname__', None) or repr(handler)
