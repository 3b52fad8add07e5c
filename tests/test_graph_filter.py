"""Tests for post-analysis graph filters."""

from __future__ import annotations

import pytest

from causalpath.data import GeneWithData, ProteinData
from causalpath.graph_filter import GraphFilter, RelationGraphFilter
from causalpath.network import Relation, RelationType


@pytest.fixture
def genes() -> dict[str, GeneWithData]:
    return {
        "A": GeneWithData("A"),
        "B": GeneWithData("B", [ProteinData(id="b", gene="B", change_value=1.0)]),
        "C": GeneWithData("C", [ProteinData(id="c", gene="C", change_value=-3.0)]),
        "D": GeneWithData("D", [ProteinData(id="d", gene="D", change_value=2.0)]),
    }


@pytest.fixture
def relations(genes: dict[str, GeneWithData]) -> set[Relation]:
    def rel(source: str, target: str, rel_type: RelationType) -> Relation:
        return Relation(source, target, rel_type, genes[source], genes[target])

    return {
        rel("A", "B", RelationType.UPREGULATES_EXPRESSION),
        rel("A", "C", RelationType.UPREGULATES_EXPRESSION),
        rel("A", "D", RelationType.ACTIVATES_GTPASE),
        rel("B", "D", RelationType.UPREGULATES_EXPRESSION),
    }


def _pairs(relations: set[Relation]) -> set[tuple[str, str]]:
    return {(r.source, r.target) for r in relations}


def test_conforms_to_protocol() -> None:
    assert isinstance(RelationGraphFilter(), GraphFilter)


def test_no_options_keeps_everything(relations: set[Relation]) -> None:
    assert RelationGraphFilter().post_analysis_filter(relations) == relations


def test_skip_types(relations: set[Relation]) -> None:
    kept = RelationGraphFilter(skip_types={RelationType.ACTIVATES_GTPASE}).post_analysis_filter(relations)

    assert _pairs(kept) == {("A", "B"), ("A", "C"), ("B", "D")}


def test_focus_genes(relations: set[Relation]) -> None:
    kept = RelationGraphFilter(focus_genes={"D"}).post_analysis_filter(relations)

    assert _pairs(kept) == {("A", "D"), ("B", "D")}


def test_max_relations_per_gene_prefers_strongest_target(relations: set[Relation]) -> None:
    kept = RelationGraphFilter(max_relations_per_gene=2).post_analysis_filter(relations)

    assert _pairs(kept) == {("A", "C"), ("A", "D"), ("B", "D")}


def test_only_removes(relations: set[Relation]) -> None:
    kept = RelationGraphFilter(
        skip_types={RelationType.UPREGULATES_EXPRESSION},
        focus_genes={"B"},
        max_relations_per_gene=1,
    ).post_analysis_filter(relations)

    assert kept <= relations
    assert kept == set()


def test_invalid_limit() -> None:
    with pytest.raises(ValueError):
        RelationGraphFilter(max_relations_per_gene=0)
