"""Post-analysis filters applied to the relations a search accepts."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from causalpath.network import Relation, RelationType


@runtime_checkable
class GraphFilter(Protocol):
    """Narrows an accepted relation set. Must only remove relations."""

    def post_analysis_filter(self, relations: set[Relation]) -> set[Relation]: ...


def _strongest_target_change(relation: Relation) -> float:
    data = relation.target_data.get_data(*relation.target_data.data_types())
    return max((abs(d.change_value) for d in data), default=0.0)


@dataclass
class RelationGraphFilter:
    """Keeps the relevant part of a result graph.

    Filters apply in order: relation types in ``skip_types`` are dropped,
    then, if ``focus_genes`` is set, only relations touching one of them are
    kept, then each source gene keeps at most ``max_relations_per_gene``
    relations ranked by the strongest change observed on their target.
    """

    skip_types: set[RelationType] = field(default_factory=set)
    focus_genes: set[str] = field(default_factory=set)
    max_relations_per_gene: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_relations_per_gene is not None and self.max_relations_per_gene < 1:
            raise ValueError("max_relations_per_gene must be at least 1")

    def post_analysis_filter(self, relations: set[Relation]) -> set[Relation]:
        kept: Iterable[Relation] = (r for r in relations if r.type not in self.skip_types)
        if self.focus_genes:
            kept = (r for r in kept if r.source in self.focus_genes or r.target in self.focus_genes)
        result = set(kept)

        if self.max_relations_per_gene is not None:
            by_source: dict[str, list[Relation]] = defaultdict(list)
            for relation in result:
                by_source[relation.source].append(relation)
            result = set()
            for group in by_source.values():
                group.sort(key=lambda r: (-_strongest_target_change(r), r.target, r.type.label))
                result.update(group[: self.max_relations_per_gene])

        return result
