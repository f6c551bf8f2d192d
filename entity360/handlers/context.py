"""Dependencies shared by command handlers."""

from dataclasses import dataclass, field
from typing import Optional

from entity360.core.config import Settings, get_settings
from entity360.core.database import Database
from entity360.services.ai.clients import (
    OCRServiceClient,
    ObjectDetectionClient,
    QAGeneratorClient,
    VectorSearchClient,
)
from entity360.services.ai.contracts import (
    OCRService,
    ObjectDetectionService,
    QAGenerationService,
    RankingService,
    VectorIndexService,
)
from entity360.services.graph.color_mapper import ScoreColorMapper
from entity360.services.graph.graph_assembler import GraphAssembler


@dataclass
class HandlerContext:
    """Database handle and service clients passed to every handler.

    The vector client serves both indexing and ranking unless a separate
    ranking service is given.
    """

    database: Database
    ocr: OCRService
    vector: VectorIndexService
    qa: QAGenerationService
    settings: Settings = field(default_factory=get_settings)
    ranking: Optional[RankingService] = None
    object_detection: Optional[ObjectDetectionService] = None

    def __post_init__(self):
        if self.ranking is None and isinstance(self.vector, RankingService):
            self.ranking = self.vector

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "HandlerContext":
        settings = settings or get_settings()
        return cls(
            database=Database.from_settings(settings.db),
            ocr=OCRServiceClient.from_settings(settings.ai),
            vector=VectorSearchClient.from_settings(
                settings.ai, default_top_k=settings.graph.ranking_top_k
            ),
            qa=QAGeneratorClient.from_settings(settings.ai),
            object_detection=ObjectDetectionClient.from_settings(settings.ai),
            settings=settings,
        )

    def graph_assembler(self) -> GraphAssembler:
        graph = self.settings.graph
        return GraphAssembler(
            color_mapper=ScoreColorMapper(graph.low_color, graph.high_color),
            default_color=graph.default_color,
        )

    async def close(self) -> None:
        await self.database.dispose()
