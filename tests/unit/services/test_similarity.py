"""Unit tests for the similarity index."""

import pytest

from personalization_service.exceptions import InvalidArgumentError
from personalization_service.infrastructure.memory import InMemorySimilarityStore
from personalization_service.services.similarity import SimilarityIndex


@pytest.fixture
def index(clock) -> SimilarityIndex:
    return SimilarityIndex(InMemorySimilarityStore(), clock=clock)


class TestSimilarityIndex:
    """Tests for storing and querying similarity edges."""

    def test_edges_are_symmetric(self, index) -> None:
        index.add_edge("p2", "p1", "co-purchase", 0.9)

        from_a = index.neighbors("p1", "co-purchase", 10)
        from_b = index.neighbors("p2", "co-purchase", 10)

        assert [(n.product_id, n.score) for n in from_a] == [("p2", 0.9)]
        assert [(n.product_id, n.score) for n in from_b] == [("p1", 0.9)]

    def test_pair_stored_normalised(self, index) -> None:
        edge = index.add_edge("p2", "p1", "co-purchase", 0.9)
        assert (edge.product_id_a, edge.product_id_b) == ("p1", "p2")

    def test_rescoring_replaces_edge(self, index) -> None:
        first = index.add_edge("p1", "p2", "co-purchase", 0.9)
        second = index.add_edge("p2", "p1", "co-purchase", 0.4)

        edges = index.edges("p1", 10)
        assert len(edges) == 1
        assert edges[0].similarity_score == 0.4
        assert second.id == first.id

    def test_neighbors_best_first(self, index) -> None:
        index.add_edge("p1", "p3", "co-purchase", 0.5)
        index.add_edge("p1", "p2", "co-purchase", 0.9)
        index.add_edge("p1", "p4", "co-purchase", 0.7)

        neighbors = index.neighbors("p1", "co-purchase", 2)
        assert [n.product_id for n in neighbors] == ["p2", "p4"]

    def test_neighbors_filtered_by_type(self, index) -> None:
        index.add_edge("p1", "p2", "co-purchase", 0.9)
        index.add_edge("p1", "p3", "attribute", 0.95)

        assert [n.product_id for n in index.neighbors("p1", "co-purchase", 10)] == ["p2"]
        assert [e.similarity_type for e in index.edges("p1", 10)] == ["attribute", "co-purchase"]

    def test_self_edge_rejected(self, index) -> None:
        with pytest.raises(InvalidArgumentError):
            index.add_edge("p1", "p1", "co-purchase", 1.0)

    def test_empty_type_rejected(self, index) -> None:
        with pytest.raises(InvalidArgumentError):
            index.add_edge("p1", "p2", "", 1.0)

    def test_unknown_product_has_no_edges(self, index) -> None:
        assert index.edges("nope", 10) == []
