#application/services/sync/order_submitter.py
"""Submissor de ordens - um pedido, exatamente um resultado ou uma falha."""
import asyncio
import logging
import math
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from core.contracts.gateway import IOrderBookGateway, TransportError
from core.contracts.messaging import ISystemEventBus
from core.entities.order import CancelResult, OrderRequest, OrderResult
from core.monitoring.sync_monitor import SyncMonitor
from core.types.trading import SubmitterStatistics
from application.state.view_state import ViewState
from .book_poller import DEFAULT_DEPTH
from .messages import SUBMIT_DECODE_MESSAGE, SUBMIT_TRANSPORT_MESSAGE, extract_error_message

logger = logging.getLogger(__name__)

ResultT = TypeVar('ResultT', bound=BaseModel)

ORDER_OPERATION = "ordem"
CANCEL_OPERATION = "cancelamento"


class InvalidOrderError(ValueError):
    """Entrada do formulário que não forma uma OrderRequest válida."""
    pass


class OrderSubmitter:
    """
    Transforma uma OrderRequest em uma escrita no servidor e publica o
    desfecho no ViewState.
    
    submitting fica True desde a chamada de submit() (de forma síncrona) até
    a conclusão, em todos os caminhos de saída. Não há deduplicação: duas
    chamadas com a mesma requisição são duas operações no servidor.
    """

    def __init__(self, gateway: IOrderBookGateway, view_state: ViewState,
                 depth: int = DEFAULT_DEPTH,
                 event_bus: Optional[ISystemEventBus] = None,
                 monitor: Optional[SyncMonitor] = None):
        """
        Args:
            gateway: Gateway HTTP do serviço
            view_state: Estado da tela a atualizar
            depth: Profundidade do livro devolvido (a mesma do polling)
            event_bus: Barramento para ORDER_ACCEPTED / ORDER_REJECTED / ORDER_CANCELLED
            monitor: Contadores de sincronização
        """
        self.gateway = gateway
        self.view_state = view_state
        self.depth = depth
        self.event_bus = event_bus
        self.monitor = monitor
        
        self._submissions = 0
        self._cancels = 0
        self._inflight = set()

    # ------------------------------------------------------------------
    # Formulário
    # ------------------------------------------------------------------

    @staticmethod
    def build_request(side: Any, price: Any, qty: Any) -> OrderRequest:
        """
        Monta a requisição a partir dos valores do formulário.
        
        Raises:
            InvalidOrderError: lado desconhecido ou preço/quantidade não positivos
        """
        try:
            return OrderRequest(
                side=side.strip().lower() if isinstance(side, str) else side,
                price=_parse_number(price),
                qty=_parse_number(qty),
            )
        except ValueError as e:
            raise InvalidOrderError(
                "Ordem inválida: lado deve ser buy/sell, preço e quantidade números positivos"
            ) from e

    # ------------------------------------------------------------------
    # Operações
    # ------------------------------------------------------------------

    def submit(self, request: OrderRequest) -> "asyncio.Task[Optional[OrderResult]]":
        """
        Envia a ordem. O ViewState entra em 'submitting' antes do retorno.
        
        Returns:
            Task que resolve para o OrderResult ou None em caso de falha
        """
        loop = asyncio.get_running_loop()
        self.view_state.begin_submission()
        stamp = self.view_state.issue_stamp()
        self._submissions += 1
        
        logger.info(f"📤 Enviando ordem {request.side.value} {request.qty} @ {request.price}")
        
        return self._track(loop.create_task(self._write(
            operation=ORDER_OPERATION,
            call=lambda: self.gateway.post_order(request, self.depth),
            model=OrderResult,
            on_success=lambda result: self._order_accepted(result, stamp),
        )))

    def cancel(self, order_id: int) -> "asyncio.Task[Optional[CancelResult]]":
        """Cancela uma ordem em repouso, com o mesmo ciclo de vida de submit()."""
        loop = asyncio.get_running_loop()
        self.view_state.begin_submission()
        stamp = self.view_state.issue_stamp()
        self._cancels += 1
        
        logger.info(f"🗑️ Cancelando ordem #{order_id}")
        
        return self._track(loop.create_task(self._write(
            operation=CANCEL_OPERATION,
            call=lambda: self.gateway.cancel_order(order_id, self.depth),
            model=CancelResult,
            on_success=lambda result: self._order_cancelled(result, stamp),
        )))

    async def _write(self, operation: str,
                     call: Callable[[], Awaitable[Any]],
                     model: Type[ResultT],
                     on_success: Callable[[ResultT], None]) -> Optional[ResultT]:
        """
        Ciclo comum de escrita, em ordem de prioridade:
        transporte -> status não-2xx -> decodificação -> sucesso.
        """
        try:
            try:
                reply = await call()
            except TransportError as e:
                self._reject(operation, SUBMIT_TRANSPORT_MESSAGE, detail=str(e))
                return None
            except Exception as e:
                logger.error(f"Erro inesperado no {operation}: {e}", exc_info=True)
                self._reject(operation, SUBMIT_TRANSPORT_MESSAGE, detail=str(e))
                return None
            
            if not reply.ok:
                self._reject(operation, extract_error_message(reply), status=reply.status)
                return None
            
            try:
                result = model.model_validate_json(reply.body)
            except ValidationError as e:
                self._reject(operation, SUBMIT_DECODE_MESSAGE,
                             detail=f"{e.error_count()} erro(s) de validação")
                return None
            
            on_success(result)
            return result
        finally:
            self.view_state.end_submission()

    def _order_accepted(self, result: OrderResult, stamp: int) -> None:
        applied = self.view_state.apply_order_result(result, stamp)
        
        if self.monitor:
            self.monitor.record_order(accepted=True)
            if not applied:
                self.monitor.record_stale_rejection()
        
        logger.info(f"✅ Ordem #{result.order_id} aceita - {len(result.trades)} negócio(s)")
        self._publish("ORDER_ACCEPTED", result)

    def _order_cancelled(self, result: CancelResult, stamp: int) -> None:
        applied = self.view_state.apply_cancel_result(result, stamp)
        
        if self.monitor:
            self.monitor.record_cancel(succeeded=True)
            if not applied:
                self.monitor.record_stale_rejection()
        
        logger.info(f"✅ Ordem #{result.order_id} cancelada")
        self._publish("ORDER_CANCELLED", result)

    def _reject(self, operation: str, message: str,
                status: Optional[int] = None, detail: str = "") -> None:
        self.view_state.fail_submission(message)
        
        if self.monitor:
            if operation == CANCEL_OPERATION:
                self.monitor.record_cancel(succeeded=False)
            else:
                self.monitor.record_order(accepted=False)
        
        logger.warning(f"❌ Falha no {operation}: {message} {detail}".rstrip())
        self._publish("ORDER_REJECTED", {
            'operation': operation,
            'message': message,
            'status': status
        })

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def drain(self, timeout: Optional[float] = None) -> None:
        if self._inflight:
            await asyncio.wait(set(self._inflight), timeout=timeout)

    def _publish(self, event_type: str, data: Any) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, data)

    def get_statistics(self) -> SubmitterStatistics:
        return {
            'submissions': self._submissions,
            'cancels': self._cancels,
            'inflight': len(self._inflight),
        }


def _parse_number(value: Any) -> Union[int, float]:
    """'10200' -> 10200, '10.5' -> 10.5; levanta ValueError se não for número finito."""
    if isinstance(value, bool):
        raise ValueError(f"Valor numérico inválido: {value!r}")
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        try:
            number = int(text)
        except ValueError:
            number = float(text)
    
    if isinstance(number, float) and not math.isfinite(number):
        raise ValueError(f"Valor numérico inválido: {value!r}")
    return number
