"""Tests for relations of the prior network."""

from __future__ import annotations

import pytest

from causalpath.data import GeneWithData, ProteinSite
from causalpath.detectors import ChangeSignDetector
from causalpath.network import Relation, RelationCategory, RelationType


def _relation(rel_type: RelationType, sites: tuple[str, ...] = (), **kwargs: object) -> Relation:
    return Relation(
        source="MTOR",
        target="AKT1",
        type=rel_type,
        source_data=GeneWithData("MTOR"),
        target_data=GeneWithData("AKT1"),
        sites=frozenset(ProteinSite.parse(s) for s in sites),
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.parametrize(
    ("rel_type", "category", "sign"),
    [
        (RelationType.PHOSPHORYLATES, RelationCategory.AFFECTS_PHOSPHO_SITE, 1),
        (RelationType.DEPHOSPHORYLATES, RelationCategory.AFFECTS_PHOSPHO_SITE, -1),
        (RelationType.UPREGULATES_EXPRESSION, RelationCategory.AFFECTS_TOTAL_PROTEIN, 1),
        (RelationType.DOWNREGULATES_EXPRESSION, RelationCategory.AFFECTS_TOTAL_PROTEIN, -1),
        (RelationType.ACTIVATES_GTPASE, RelationCategory.AFFECTS_GTPASE_ACTIVITY, 1),
        (RelationType.INHIBITS_GTPASE, RelationCategory.AFFECTS_GTPASE_ACTIVITY, -1),
    ],
)
def test_relation_type_category_and_sign(
    rel_type: RelationType, category: RelationCategory, sign: int
) -> None:
    assert rel_type.category is category
    assert rel_type.sign == sign
    assert RelationType.from_name(rel_type.label) is rel_type


def test_relation_type_flags() -> None:
    assert RelationType.PHOSPHORYLATES.affects_phospho_site
    assert not RelationType.PHOSPHORYLATES.affects_total_protein
    assert RelationType.UPREGULATES_EXPRESSION.affects_total_protein
    assert RelationType.INHIBITS_GTPASE.affects_gtpase


def test_unknown_relation_type() -> None:
    with pytest.raises(ValueError, match="Unknown relation type"):
        RelationType.from_name("ubiquitinates")


def test_sign_defaults_to_type_sign() -> None:
    assert _relation(RelationType.DEPHOSPHORYLATES).sign == -1
    assert _relation(RelationType.PHOSPHORYLATES, sign=-1).sign == -1


def test_invalid_sign_rejected() -> None:
    with pytest.raises(ValueError, match="sign"):
        _relation(RelationType.PHOSPHORYLATES, sign=0)


def test_gene_data_must_match_endpoints() -> None:
    with pytest.raises(ValueError, match="Target data"):
        Relation(
            source="MTOR",
            target="AKT1",
            type=RelationType.PHOSPHORYLATES,
            source_data=GeneWithData("MTOR"),
            target_data=GeneWithData("AKT2"),
        )


def test_default_change_detector() -> None:
    assert isinstance(_relation(RelationType.PHOSPHORYLATES).change_detector, ChangeSignDetector)


def test_target_with_sites_exact() -> None:
    relation = _relation(RelationType.PHOSPHORYLATES, ("S473", "T308"))

    assert relation.target_with_sites() == {("AKT1", 473), ("AKT1", 308)}


def test_target_with_sites_proximity() -> None:
    relation = _relation(RelationType.PHOSPHORYLATES, ("S473",))

    assert relation.target_with_sites(2) == {("AKT1", p) for p in range(471, 476)}


def test_target_with_sites_rejects_negative_proximity() -> None:
    with pytest.raises(ValueError):
        _relation(RelationType.PHOSPHORYLATES, ("S473",)).target_with_sites(-1)


def test_sites_in_string() -> None:
    assert _relation(RelationType.PHOSPHORYLATES, ("T308", "S473")).sites_in_string() == "S473;T308"
    assert _relation(RelationType.UPREGULATES_EXPRESSION).sites_in_string() == ""


def test_relations_are_distinct_set_members() -> None:
    assert len({_relation(RelationType.PHOSPHORYLATES), _relation(RelationType.PHOSPHORYLATES)}) == 2
