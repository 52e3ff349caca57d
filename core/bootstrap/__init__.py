"""Inicialização do sistema."""
from .system import SystemBootstrap

__all__ = ['SystemBootstrap']
