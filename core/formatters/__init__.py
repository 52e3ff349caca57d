"""Formatadores para exibição."""
from .book_formatter import BookFormatter

__all__ = ['BookFormatter']
