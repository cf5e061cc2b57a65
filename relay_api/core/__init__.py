"""Core - dominio, validación y monitorización del relay."""
