"""Entity360 catalog core: digital entity enrichment and workflow graphs."""

__version__ = "0.1.0"
