"""Configuração do cliente."""
