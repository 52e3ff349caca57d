#application/services/sync/messages.py
"""Mensagens de erro exibidas na tela e decodificação de corpos de erro."""
from pydantic import ValidationError

from core.contracts.gateway import HttpReply
from core.entities.order import ErrorBody

POLL_TRANSPORT_MESSAGE = "Falha ao buscar dados: servidor inacessível"
POLL_DECODE_MESSAGE = "Falha ao buscar dados: resposta inválida do servidor"

SUBMIT_TRANSPORT_MESSAGE = "Falha ao enviar: servidor inacessível"
SUBMIT_DECODE_MESSAGE = "Falha ao enviar: resposta inválida do servidor"


def status_message(status: int) -> str:
    """Mensagem derivada do código de status (ex: 'HTTP 500')."""
    return f"HTTP {status}"


def extract_error_message(reply: HttpReply) -> str:
    """
    Mensagem para uma resposta não-2xx.
    
    Usa o campo 'error' do corpo quando ele é uma string não vazia; qualquer
    outro formato (corpo vazio, JSON inválido, campo ausente ou de outro tipo)
    cai na mensagem do status. Nunca levanta exceção.
    """
    try:
        body = ErrorBody.model_validate_json(reply.body)
    except ValidationError:
        return status_message(reply.status)
    
    if body.error and body.error.strip():
        return body.error
    return status_message(reply.status)
