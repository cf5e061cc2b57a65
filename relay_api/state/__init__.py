from .source_store import SourceState, SourceStore

__all__ = ["SourceState", "SourceStore"]
