#application/orchestration/init.py 
"""Orquestração do cliente."""
from .coordinator import SystemCoordinator, SessionNotMountedError
from .handlers import OrchestrationHandlers

__all__ = ['SystemCoordinator', 'SessionNotMountedError', 'OrchestrationHandlers']
