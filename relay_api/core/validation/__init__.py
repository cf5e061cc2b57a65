"""Validación y normalización de registros entrantes."""

from .normalizer import coerce_number, normalize_record

__all__ = ["coerce_number", "normalize_record"]
