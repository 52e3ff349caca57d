#core/entities/order.py
"""Entidades de ordem - requisição do usuário e respostas do servidor."""
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, StrictBool, StrictInt

from .book import Book
from .trade import Trade


class OrderSide(str, Enum):
    """Lado da ordem."""
    BUY = "buy"
    SELL = "sell"


class OrderRequest(BaseModel):
    """
    Ordem construída pelo usuário, ainda sem identidade.
    
    Os números são repassados ao servidor como digitados: inteiros continuam
    inteiros e frações seguem como float (o servidor decide se aceita).
    """
    model_config = ConfigDict(frozen=True)
    
    side: OrderSide
    price: Union[PositiveInt, PositiveFloat] = Field(description="Preço em centavos")
    qty: Union[PositiveInt, PositiveFloat] = Field(description="Quantidade")

    def to_payload(self) -> Dict[str, Any]:
        """Corpo JSON enviado em POST /orders."""
        return {'side': self.side.value, 'price': self.price, 'qty': self.qty}


class OrderResult(BaseModel):
    """Resposta autoritativa do servidor a uma submissão (todos os campos obrigatórios)."""
    model_config = ConfigDict(frozen=True)
    
    order_id: StrictInt
    trades: List[Trade]
    book: Book


class CancelResult(BaseModel):
    """Resposta de DELETE /orders/{id}."""
    model_config = ConfigDict(frozen=True)
    
    cancelled: StrictBool
    order_id: StrictInt
    book: Book


class ErrorBody(BaseModel):
    """Corpo de erro opcional devolvido em respostas não-2xx."""
    error: Optional[str] = None
