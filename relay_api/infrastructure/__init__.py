"""Infraestructura del relay (persistencia)."""
