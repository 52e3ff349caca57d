"""Monitoramento do cliente."""
from .sync_monitor import SyncMonitor

__all__ = ['SyncMonitor']
