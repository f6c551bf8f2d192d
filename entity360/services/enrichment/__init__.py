"""Entity ingestion and enrichment."""

from entity360.services.enrichment.pipeline import EnrichmentPipeline
from entity360.services.enrichment.status_store import TrainingStatusStore

__all__ = ["EnrichmentPipeline", "TrainingStatusStore"]
