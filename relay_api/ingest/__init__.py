from .coordinator import IngestCoordinator, IngestOutcome

__all__ = ["IngestCoordinator", "IngestOutcome"]
