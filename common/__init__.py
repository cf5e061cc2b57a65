"""Configuración compartida del proceso."""
