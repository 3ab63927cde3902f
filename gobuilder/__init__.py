"""go-builder — declarative Go build matrix orchestrator."""

__version__ = "0.1.0"
