#application/services/sync/poller.py
"""Base dos pollers periódicos - agenda, sessão de vida e descarte de respostas tardias."""
import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional, Set

from pydantic import ValidationError

from core.contracts.gateway import HttpReply, TransportError
from core.contracts.messaging import ISystemEventBus
from core.monitoring.sync_monitor import SyncMonitor
from core.types.trading import PollerStatistics
from application.state.view_state import ViewState
from .messages import POLL_DECODE_MESSAGE, POLL_TRANSPORT_MESSAGE, status_message

logger = logging.getLogger(__name__)


class IntervalPoller(ABC):
    """
    Executa um ciclo de leitura imediatamente em start() e depois a cada
    `interval` segundos, até stop().
    
    Os ciclos são disparados pelo relógio sem esperar os anteriores, então
    podem terminar fora da ordem de emissão. Cada ciclo carrega o token da
    sessão start()/stop() em que nasceu e só escreve no ViewState se essa
    sessão ainda estiver viva. Dentro de uma mesma sessão viva não há
    reordenação: vale a última resposta a chegar (a menos que o ViewState
    rejeite carimbos antigos).
    """

    name = "poller"
    failure_event = "POLL_FAILED"

    def __init__(self, view_state: ViewState, interval: float,
                 event_bus: Optional[ISystemEventBus] = None,
                 monitor: Optional[SyncMonitor] = None):
        if interval <= 0:
            raise ValueError(f"Intervalo de polling deve ser positivo: {interval}")
        
        self.view_state = view_state
        self.interval = interval
        self.event_bus = event_bus
        self.monitor = monitor
        
        self._session: Optional[int] = None
        self._session_counter = 0
        self._ticker: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._cycles_issued = 0
        self.consecutive_failures = 0

    @property
    def running(self) -> bool:
        return self._session is not None

    def is_live(self, session: Optional[int]) -> bool:
        """True se `session` é a sessão atual e ela não foi encerrada."""
        return session is not None and session == self._session

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Abre uma nova sessão: um ciclo agora e um a cada intervalo."""
        if self.running:
            logger.warning(f"{self.name}: start() ignorado, sessão #{self._session} já ativa")
            return
        
        loop = asyncio.get_running_loop()
        self._session_counter += 1
        session = self._session_counter
        self._session = session
        self.consecutive_failures = 0
        
        self._spawn_cycle(session)
        self._ticker = loop.create_task(self._tick(session), name=f"{self.name}-ticker-{session}")
        
        logger.info(f"▶️ {self.name}: sessão #{session} iniciada (intervalo {self.interval}s)")
        self._publish("SESSION_STARTED", {'poller': self.name, 'session': session})

    def stop(self) -> None:
        """
        Encerra a sessão atual e cancela o agendamento.
        
        Requisições já emitidas não são abortadas: quando resolverem, o
        resultado é descartado.
        """
        if not self.running:
            return
        
        session = self._session
        self._session = None
        
        if self._ticker:
            self._ticker.cancel()
            self._ticker = None
        
        logger.info(
            f"⏹️ {self.name}: sessão #{session} encerrada "
            f"({len(self._inflight)} ciclo(s) pendente(s) serão descartados)"
        )
        self._publish("SESSION_STOPPED", {'poller': self.name, 'session': session})

    async def poll_once(self) -> None:
        """Executa um ciclo na sessão atual e espera o resultado."""
        await self._run_cycle(self._session)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Espera os ciclos pendentes terminarem (usado ao sair da tela)."""
        if self._inflight:
            await asyncio.wait(set(self._inflight), timeout=timeout)

    # ------------------------------------------------------------------
    # Agenda
    # ------------------------------------------------------------------

    async def _tick(self, session: int) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        
        while self.is_live(session):
            next_tick += self.interval
            delay = next_tick - loop.time()
            if delay < 0:
                # atrasado: não dispara rajada de ciclos para compensar
                if -delay > self.interval:
                    logger.warning(f"⚠️ {self.name}: agenda atrasada {-delay:.3f}s")
                next_tick = loop.time()
                delay = 0
            
            await asyncio.sleep(delay)
            
            if self.is_live(session):
                self._spawn_cycle(session)

    def _spawn_cycle(self, session: int) -> None:
        self._cycles_issued += 1
        task = asyncio.get_running_loop().create_task(self._run_cycle(session))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    # ------------------------------------------------------------------
    # Ciclo
    # ------------------------------------------------------------------

    async def _run_cycle(self, session: Optional[int]) -> None:
        """
        Um ciclo completo: emite, espera, classifica e aplica.
        
        Toda decisão de escrita é tomada depois do await e aplicada sem novo
        await, então nenhuma outra escrita intercala no meio.
        """
        stamp = self.view_state.issue_stamp()
        started = time.perf_counter()
        
        try:
            reply = await self.fetch()
        except TransportError as e:
            if self._dropped(session):
                return
            self._fail(POLL_TRANSPORT_MESSAGE, started, detail=str(e))
            return
        except Exception as e:
            logger.error(f"Erro inesperado no ciclo de {self.name}: {e}", exc_info=True)
            if not self._dropped(session):
                self._fail(POLL_TRANSPORT_MESSAGE, started, detail=str(e))
            return
        
        if self._dropped(session):
            return
        
        if not reply.ok:
            self._fail(status_message(reply.status), started, detail=f"status {reply.status}")
            return
        
        try:
            decoded = self.decode(reply)
        except ValidationError as e:
            self._fail(POLL_DECODE_MESSAGE, started, detail=f"{e.error_count()} erro(s) de validação")
            return
        
        applied = self.apply(decoded, stamp)
        
        if self.consecutive_failures > 0:
            logger.info(f"✅ {self.name} recuperado após {self.consecutive_failures} falha(s)")
            self.consecutive_failures = 0
        
        if self.monitor:
            self.monitor.record_poll('ok', _elapsed_ms(started))
            if not applied:
                self.monitor.record_stale_rejection()

    def _dropped(self, session: Optional[int]) -> bool:
        if self.is_live(session):
            return False
        logger.debug(f"{self.name}: resposta da sessão #{session} descartada")
        if self.monitor:
            self.monitor.record_poll('dropped')
        self._publish("POLL_RESPONSE_DROPPED", {'poller': self.name, 'session': session})
        return True

    def _fail(self, message: str, started: float, detail: str = "") -> None:
        self.consecutive_failures += 1
        self.apply_failure(message)
        
        if self.monitor:
            self.monitor.record_poll('failed', _elapsed_ms(started))
        
        # só loga a transição para falha; os demais ciclos vão para debug
        if self.consecutive_failures == 1:
            logger.warning(f"📡 {self.name}: {message} ({detail})")
        else:
            logger.debug(f"{self.name}: falha #{self.consecutive_failures} - {detail}")
        
        self._publish(self.failure_event, {
            'poller': self.name,
            'message': message,
            'consecutive': self.consecutive_failures
        })

    def _publish(self, event_type: str, data: Any) -> None:
        if self.event_bus:
            self.event_bus.publish(event_type, data)

    # ------------------------------------------------------------------
    # Pontos de extensão
    # ------------------------------------------------------------------

    @abstractmethod
    async def fetch(self) -> HttpReply:
        """Emite a leitura."""
        pass

    @abstractmethod
    def decode(self, reply: HttpReply) -> Any:
        """Decodificação tipada do corpo 2xx; levanta ValidationError se malformado."""
        pass

    @abstractmethod
    def apply(self, decoded: Any, stamp: int) -> bool:
        """Escreve o resultado no ViewState; False se foi descartado por carimbo."""
        pass

    @abstractmethod
    def apply_failure(self, message: str) -> None:
        """Registra o erro no canal próprio do poller, sem tocar nos dados."""
        pass

    def get_statistics(self) -> PollerStatistics:
        return {
            'name': self.name,
            'running': self.running,
            'session': self._session or 0,
            'cycles_issued': self._cycles_issued,
            'inflight': len(self._inflight),
            'interval': self.interval,
        }


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
