"""Monitorización del relay."""

from .stats import Stats

__all__ = ["Stats"]
