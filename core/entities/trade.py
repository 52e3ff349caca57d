#core/entities/trade.py
"""Entidade Trade - um casamento entre uma ordem agressora e uma passiva."""
from typing import List
from pydantic import BaseModel, ConfigDict, Field, StrictInt


class Trade(BaseModel):
    """Fato imutável descrevendo um negócio gerado pelo motor de casamento."""
    model_config = ConfigDict(frozen=True)
    
    price: StrictInt = Field(gt=0, description="Preço do negócio em centavos")
    qty: StrictInt = Field(gt=0, description="Quantidade negociada")
    taker_order_id: StrictInt = Field(description="Ordem que chegou (agressora)")
    maker_order_id: StrictInt = Field(description="Ordem que estava no livro")


class TradeTape(BaseModel):
    """Resposta de GET /trades: negócios recentes na ordem do servidor."""
    model_config = ConfigDict(frozen=True)
    
    trades: List[Trade]
