"""Transportes del relay."""
