"""Prior-knowledge relations between genes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from causalpath.data import GeneWithData, ProteinSite
from causalpath.detectors import ChangeSignDetector, TwoDataChangeDetector


class UnhandledRelationTypeError(RuntimeError):
    """Raised when a relation's category has no eligibility rule."""

    pass


class RelationCategory(str, Enum):
    """What a relation changes on its target."""

    AFFECTS_PHOSPHO_SITE = "affects-phospho-site"
    AFFECTS_TOTAL_PROTEIN = "affects-total-protein"
    AFFECTS_GTPASE_ACTIVITY = "affects-gtpase-activity"


class RelationType(Enum):
    """Mechanistic verbs of the prior network with their category and sign."""

    PHOSPHORYLATES = ("phosphorylates", RelationCategory.AFFECTS_PHOSPHO_SITE, 1)
    DEPHOSPHORYLATES = ("dephosphorylates", RelationCategory.AFFECTS_PHOSPHO_SITE, -1)
    UPREGULATES_EXPRESSION = ("upregulates-expression", RelationCategory.AFFECTS_TOTAL_PROTEIN, 1)
    DOWNREGULATES_EXPRESSION = (
        "downregulates-expression",
        RelationCategory.AFFECTS_TOTAL_PROTEIN,
        -1,
    )
    ACTIVATES_GTPASE = ("activates-gtpase", RelationCategory.AFFECTS_GTPASE_ACTIVITY, 1)
    INHIBITS_GTPASE = ("inhibits-gtpase", RelationCategory.AFFECTS_GTPASE_ACTIVITY, -1)

    def __init__(self, label: str, category: RelationCategory, sign: int) -> None:
        self.label = label
        self.category = category
        self.sign = sign

    @property
    def affects_phospho_site(self) -> bool:
        return self.category is RelationCategory.AFFECTS_PHOSPHO_SITE

    @property
    def affects_total_protein(self) -> bool:
        return self.category is RelationCategory.AFFECTS_TOTAL_PROTEIN

    @property
    def affects_gtpase(self) -> bool:
        return self.category is RelationCategory.AFFECTS_GTPASE_ACTIVITY

    @classmethod
    def from_name(cls, name: str) -> RelationType:
        key = name.strip().lower()
        for member in cls:
            if member.label == key:
                return member
        raise ValueError(f"Unknown relation type '{name}'")


@dataclass(eq=False)
class Relation:
    """A directed, signed edge from ``source`` to ``target``.

    ``source_data`` and ``target_data`` are references to the caller's gene
    records; the relation never copies them. ``sites`` are the target residues
    the relation is annotated to modify and only matter for phospho-site
    relations.
    """

    source: str
    target: str
    type: RelationType
    source_data: GeneWithData
    target_data: GeneWithData
    sites: frozenset[ProteinSite] = frozenset()
    change_detector: TwoDataChangeDetector = field(default_factory=ChangeSignDetector)
    sign: Optional[int] = None

    def __post_init__(self) -> None:
        if self.sign is None:
            self.sign = self.type.sign
        elif self.sign not in (-1, 1):
            raise ValueError(f"Relation sign must be -1 or 1, got {self.sign!r}")
        if self.source_data.gene != self.source:
            raise ValueError(f"Source data is for {self.source_data.gene}, expected {self.source}")
        if self.target_data.gene != self.target:
            raise ValueError(f"Target data is for {self.target_data.gene}, expected {self.target}")

    @property
    def category(self) -> RelationCategory:
        return self.type.category

    def target_with_sites(self, proximity: int = 0) -> set[tuple[str, int]]:
        """Expand the annotated sites to (target, position) pairs within ``proximity``."""
        if proximity < 0:
            raise ValueError("Site proximity must be non-negative")
        pairs: set[tuple[str, int]] = set()
        for site in self.sites:
            for offset in range(-proximity, proximity + 1):
                pairs.add((self.target, site.position + offset))
        return pairs

    def sites_in_string(self) -> str:
        return ";".join(sorted(str(site) for site in self.sites))

    def __repr__(self) -> str:
        return f"Relation({self.source} -{self.type.label}-> {self.target})"
