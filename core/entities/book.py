#core/entities/book.py
"""Entidade Book - snapshot do livro de ofertas recebido do servidor."""
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from typing import List, Optional


class PriceLevel(BaseModel):
    """Quantidade agregada em repouso em um único preço (em centavos)."""
    model_config = ConfigDict(frozen=True)
    
    # inteiros estritos: "10200", 10200.0 ou true não são preços
    price: StrictInt = Field(gt=0, description="Preço do nível em centavos")
    qty: StrictInt = Field(ge=0, description="Quantidade agregada no nível")


class Book(BaseModel):
    """
    Snapshot do livro de ofertas.
    
    A ordem das listas é a ordem de exibição (melhor preço primeiro) e é
    mantida exatamente como recebida do servidor. Os dois lados são
    obrigatórios: um corpo sem 'bids' ou 'asks' é inválido, não um livro vazio.
    """
    model_config = ConfigDict(frozen=True)
    
    bids: List[PriceLevel]
    asks: List[PriceLevel]

    @classmethod
    def empty(cls) -> "Book":
        """Livro inicial, antes do primeiro snapshot."""
        return cls(bids=[], asks=[])

    @property
    def best_bid(self) -> Optional[int]:
        """Retorna o melhor preço de compra."""
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> Optional[int]:
        """Retorna o melhor preço de venda."""
        return self.asks[0].price if self.asks else None
    
    @property
    def spread(self) -> Optional[int]:
        """Retorna o spread (diferença entre ask e bid)."""
        if self.best_bid is not None and self.best_ask is not None:
            return self.best_ask - self.best_bid
        return None

    @property
    def is_empty(self) -> bool:
        return not self.bids and not self.asks
