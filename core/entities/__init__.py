#core/entities/init.py
"""
Entidades do domínio - representam os dados trocados com o servidor.
Todas são imutáveis (frozen=True) para garantir integridade.
"""

from .book import Book, PriceLevel
from .trade import Trade, TradeTape
from .order import OrderSide, OrderRequest, OrderResult, CancelResult, ErrorBody

__all__ = [
    'Book', 'PriceLevel',
    'Trade', 'TradeTape',
    'OrderSide', 'OrderRequest', 'OrderResult', 'CancelResult', 'ErrorBody'
]
