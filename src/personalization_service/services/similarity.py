"""Product similarity index."""

import structlog

from personalization_service.domain.models import (
    Clock,
    ProductSimilarityEdge,
    SimilarNeighbor,
    edge_key,
    utc_now,
)
from personalization_service.exceptions import InvalidArgumentError
from personalization_service.infrastructure.repository import SimilarityStore

logger = structlog.get_logger()


class SimilarityIndex:
    """Read and write access to pairwise product similarity scores.

    Edges are symmetric: a pair is stored once and is reachable from either
    product.
    """

    def __init__(self, store: SimilarityStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def neighbors(
        self, product_id: str, similarity_type: str, limit: int
    ) -> list[SimilarNeighbor]:
        """Products related to ``product_id`` under one similarity type, best first."""
        edges = self.store.edges_for(product_id, similarity_type=similarity_type, limit=limit)
        return [
            SimilarNeighbor(product_id=edge.other(product_id), score=edge.similarity_score)
            for edge in edges
        ]

    def edges(
        self,
        product_id: str,
        limit: int,
        similarity_type: str | None = None,
    ) -> list[ProductSimilarityEdge]:
        return self.store.edges_for(product_id, similarity_type=similarity_type, limit=limit)

    def add_edge(
        self,
        product_a: str,
        product_b: str,
        similarity_type: str,
        score: float,
    ) -> ProductSimilarityEdge:
        """Store or replace the score for a product pair."""
        if product_a == product_b:
            raise InvalidArgumentError(
                "A product cannot be similar to itself",
                details={"product_id": product_a},
            )
        if not similarity_type:
            raise InvalidArgumentError("similarity_type must not be empty")

        low, high, _ = edge_key(product_a, product_b, similarity_type)
        edge = self.store.upsert(
            ProductSimilarityEdge(
                product_id_a=low,
                product_id_b=high,
                similarity_type=similarity_type,
                similarity_score=score,
                created_at=self.clock(),
            )
        )
        logger.debug(
            "Saved product similarity",
            product_id_a=low,
            product_id_b=high,
            similarity_type=similarity_type,
            score=score,
        )
        return edge
