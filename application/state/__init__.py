"""Estado compartilhado da tela."""
from .view_state import ViewState, ViewSnapshot

__all__ = ['ViewState', 'ViewSnapshot']
