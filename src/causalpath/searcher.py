"""Matching of experiment data with prior-knowledge relations.

``CausalitySearcher`` walks a set of relations and keeps the ones whose
source and target data show a change pattern that the relation explains
(causal mode) or contradicts (conflicting mode). For every accepted relation
it records which data pairs drove the decision, and it collects phospho data
with unknown effect that would have mattered had their effect been known.

The decision for one (source datum, target datum) pair is a sign product::

    source.effect * co_change(source, target) * relation.sign == polarity

where ``polarity`` is +1 for causal and -1 for conflicting search.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from causalpath.data import DataType, ExperimentData, GeneWithData, PhosphoProteinData
from causalpath.graph_filter import GraphFilter, RelationGraphFilter
from causalpath.network import Relation, RelationCategory, RelationType, UnhandledRelationTypeError
from causalpath.report import write_results

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY_INDICATORS = frozenset(
    {DataType.PROTEIN, DataType.PHOSPHOPROTEIN, DataType.ACTIVITY}
)

DataPair = tuple[ExperimentData, ExperimentData]


def _name_list(key: str, value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValueError(f"Search option '{key}' must be a list of names, got {type(value).__name__}")
    return [str(name) for name in value]


def _data_types(key: str, value: Any) -> list[DataType]:
    return [DataType.from_name(name) for name in _name_list(key, value)]


def _graph_filter_from_dict(data: Any) -> RelationGraphFilter:
    if not isinstance(data, Mapping):
        raise ValueError(f"Search option 'graph_filter' must be a mapping, got {type(data).__name__}")
    unknown = set(data) - {"skip_types", "focus_genes", "max_relations_per_gene"}
    if unknown:
        raise ValueError(f"Unknown graph filter option(s): {', '.join(sorted(unknown))}")
    max_per_gene = data.get("max_relations_per_gene")
    return RelationGraphFilter(
        skip_types={
            RelationType.from_name(t)
            for t in _name_list("graph_filter.skip_types", data.get("skip_types", []))
        },
        focus_genes=set(_name_list("graph_filter.focus_genes", data.get("focus_genes", []))),
        max_relations_per_gene=int(max_per_gene) if max_per_gene is not None else None,
    )


@dataclass
class SearcherConfig:
    """Settings of a causality search, fixed for the duration of a run."""

    # False searches for conflicting relations
    causal: bool = True

    # When False, any phospho datum on the target is eligible regardless of its sites
    force_site_matching: bool = True
    # Largest residue distance between relation site and data site that still matches
    site_proximity_threshold: int = 0

    collect_data_with_missing_effect: bool = True
    collect_data_used_for_inference: bool = True

    # Expression relations need activity data at their source
    mandate_activity_data_upstream_of_expression: bool = False
    # Keep only the strongest changing total protein datum as activity evidence
    use_strongest_proteomics_data_for_activity: bool = False

    general_activity_change_indicators: set[DataType] = field(
        default_factory=lambda: set(DEFAULT_ACTIVITY_INDICATORS)
    )
    # None means total protein only
    expression_evidence: Optional[tuple[DataType, ...]] = None

    graph_filter: Optional[GraphFilter] = None

    def __post_init__(self) -> None:
        if self.site_proximity_threshold < 0:
            raise ValueError("site_proximity_threshold must be non-negative")

    @property
    def polarity(self) -> int:
        return 1 if self.causal else -1

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearcherConfig:
        """Build a config from plain values, e.g. a parsed YAML document.

        Data types and relation types are given by name. Unknown keys are
        rejected so that typos do not silently fall back to defaults.
        """
        known = {
            "causal",
            "force_site_matching",
            "site_proximity_threshold",
            "collect_data_with_missing_effect",
            "collect_data_used_for_inference",
            "mandate_activity_data_upstream_of_expression",
            "use_strongest_proteomics_data_for_activity",
            "general_activity_change_indicators",
            "expression_evidence",
            "graph_filter",
        }
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown search option(s): {', '.join(sorted(unknown))}")

        kwargs: dict[str, Any] = {
            key: data[key]
            for key in known - {"general_activity_change_indicators", "expression_evidence", "graph_filter"}
            if key in data
        }
        if "site_proximity_threshold" in kwargs:
            kwargs["site_proximity_threshold"] = int(kwargs["site_proximity_threshold"])
        if "general_activity_change_indicators" in data:
            kwargs["general_activity_change_indicators"] = set(
                _data_types(
                    "general_activity_change_indicators", data["general_activity_change_indicators"]
                )
            )
        if data.get("expression_evidence"):
            kwargs["expression_evidence"] = tuple(
                _data_types("expression_evidence", data["expression_evidence"])
            )
        if data.get("graph_filter"):
            kwargs["graph_filter"] = _graph_filter_from_dict(data["graph_filter"])
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SearcherConfig:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Search config not found at {config_path}")

        with config_path.open() as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, Mapping):
            raise ValueError(f"Search config at {config_path} must be a mapping")
        return cls.from_dict(data)


@dataclass
class InferenceRecord:
    """Evidence collected during one run."""

    data_used: dict[Relation, set[ExperimentData]] = field(default_factory=dict)
    pairs_used: dict[Relation, set[DataPair]] = field(default_factory=dict)
    needs_annotation: set[ExperimentData] = field(default_factory=set)

    def clear(self) -> None:
        self.data_used.clear()
        self.pairs_used.clear()
        self.needs_annotation.clear()

    def add_pair(self, relation: Relation, source: ExperimentData, target: ExperimentData) -> None:
        self.data_used.setdefault(relation, set()).update((source, target))
        self.pairs_used.setdefault(relation, set()).add((source, target))

    def retain(self, relations: set[Relation]) -> None:
        """Drop evidence of relations that are not in ``relations``."""
        for relation in set(self.data_used) - relations:
            del self.data_used[relation]
            self.pairs_used.pop(relation, None)


def remove_shadowed_proteomic_data(data: set[ExperimentData]) -> set[ExperimentData]:
    """Keep only the strongest changing total protein datum with a known effect.

    Other data types pass through untouched. Ties go to the datum with the
    smallest ID. Returns a new set.
    """
    if len(data) <= 1:
        return set(data)

    candidates = sorted(
        (d for d in data if d.data_type is DataType.PROTEIN and d.effect != 0),
        key=lambda d: d.id,
    )
    if not candidates:
        return set(data)

    strongest = max(candidates, key=lambda d: abs(d.change_value))
    return {d for d in data if d.data_type is not DataType.PROTEIN or d is strongest}


class CausalitySearcher:
    """Finds relations that explain, or conflict with, the experiment data."""

    def __init__(self, config: SearcherConfig | None = None, *, causal: bool | None = None) -> None:
        config = config if config is not None else SearcherConfig()
        # each searcher owns its config; the caller's object is never modified
        self.config = replace(
            config,
            general_activity_change_indicators=set(config.general_activity_change_indicators),
        )
        if causal is not None:
            self.config.causal = causal
        self.record = InferenceRecord()

    def copy(self) -> CausalitySearcher:
        """Return a searcher with the same settings and empty bookkeeping.

        Evidence collection is switched off in the copy; re-enable it on the
        copy's config when parallel runs need to report evidence. The copy
        owns its config, so such changes never reach this searcher.
        """
        config = replace(
            self.config,
            general_activity_change_indicators=set(self.config.general_activity_change_indicators),
            collect_data_used_for_inference=False,
            collect_data_with_missing_effect=False,
        )
        return CausalitySearcher(config)

    def run(self, relations: Iterable[Relation]) -> set[Relation]:
        """Return the subset of ``relations`` that satisfies the search criteria."""
        self.record.clear()
        relations = set(relations)

        results = {r for r in relations if self.satisfies_criteria(r)}
        logger.debug(
            "%s search accepted %d of %d relations",
            "Causal" if self.config.causal else "Conflicting",
            len(results),
            len(relations),
        )

        if self.config.graph_filter is not None:
            filtered = self.config.graph_filter.post_analysis_filter(results)
            # a filter may only narrow the result
            results = filtered & results
            self.record.retain(results)
            logger.debug("Graph filter kept %d relations", len(results))

        return results

    def satisfies_criteria(self, relation: Relation) -> bool:
        """Check whether the relation explains (or conflicts with) its data."""
        targets = self.get_explainable_target_data(relation)
        if not targets:
            return False

        sources = self.get_affecting_source_data(relation)
        if not sources:
            return False

        # every pair is evaluated so that all supporting pairs are recorded
        satisfied = False
        for source in sources:
            for target in targets:
                if self._pair_satisfies(relation, source, target):
                    satisfied = True
        return satisfied

    def has_considerable_data(self, relation: Relation) -> bool:
        """Check for eligible data on both ends, without evaluating any change."""
        return bool(self.get_explainable_target_data(relation)) and bool(
            self.get_affecting_source_data(relation)
        )

    def _pair_satisfies(
        self, relation: Relation, source: ExperimentData, target: ExperimentData
    ) -> bool:
        e = relation.change_detector.get_change_sign(source, target) * relation.sign

        if e != 0 and source.effect == 0 and self.config.collect_data_with_missing_effect:
            self.record.needs_annotation.add(source)
            return False

        if source.effect * e == self.config.polarity:
            if self.config.collect_data_used_for_inference:
                self.record.add_pair(relation, source, target)
            return True

        return False

    def get_satisfying_source_data(
        self, relation: Relation, target: ExperimentData
    ) -> set[ExperimentData]:
        """Return the eligible source data that pair successfully with ``target``."""
        return {
            source
            for source in self.get_affecting_source_data(relation)
            if self._pair_satisfies(relation, source, target)
        }

    def get_explainable_target_data(self, relation: Relation) -> set[ExperimentData]:
        """Return target data whose change the relation could explain, by type only."""
        category = relation.category
        gene = relation.target_data

        if category is RelationCategory.AFFECTS_PHOSPHO_SITE:
            return {
                d
                for d in gene.get_data(DataType.PHOSPHOPROTEIN)
                if isinstance(d, PhosphoProteinData) and self.is_phospho_target_compatible(relation, d)
            }
        if category is RelationCategory.AFFECTS_TOTAL_PROTEIN:
            return self.get_evidence_for_expression_change(gene)
        if category is RelationCategory.AFFECTS_GTPASE_ACTIVITY:
            return gene.get_data(DataType.ACTIVITY)

        raise UnhandledRelationTypeError(f"No target data rule for relation category {category!r}")

    def get_affecting_source_data(self, relation: Relation) -> set[ExperimentData]:
        """Return source data that could be the cause of the relation, by type only."""
        category = relation.category
        gene = relation.source_data

        if category in (
            RelationCategory.AFFECTS_PHOSPHO_SITE,
            RelationCategory.AFFECTS_GTPASE_ACTIVITY,
        ):
            return self.get_general_activation_evidence(gene)
        if category is RelationCategory.AFFECTS_TOTAL_PROTEIN:
            if self.config.mandate_activity_data_upstream_of_expression:
                return gene.get_data(DataType.ACTIVITY)
            return self.get_general_activation_evidence(gene)

        raise UnhandledRelationTypeError(f"No source data rule for relation category {category!r}")

    def is_phospho_target_compatible(self, relation: Relation, target: PhosphoProteinData) -> bool:
        """Check that the relation's sites match the datum's sites, if matching is forced."""
        if not self.config.force_site_matching:
            return True
        relation_sites = relation.target_with_sites(self.config.site_proximity_threshold)
        return not relation_sites.isdisjoint(target.genes_with_sites())

    def get_general_activation_evidence(self, gene: GeneWithData) -> set[ExperimentData]:
        """Return data of the configured types that can indicate an activity change."""
        data = gene.get_data(*self.config.general_activity_change_indicators)
        if self.config.use_strongest_proteomics_data_for_activity:
            data = remove_shadowed_proteomic_data(data)
        return data

    def get_evidence_for_expression_change(self, gene: GeneWithData) -> set[ExperimentData]:
        if self.config.expression_evidence:
            return gene.get_data(*self.config.expression_evidence)
        return gene.get_data(DataType.PROTEIN)

    @property
    def data_needs_annotation(self) -> set[ExperimentData]:
        return set(self.record.needs_annotation)

    @property
    def data_used_for_inference(self) -> set[ExperimentData]:
        return {d for data in self.record.data_used.values() for d in data}

    @property
    def pairs_used_for_inference(self) -> set[DataPair]:
        return {p for pairs in self.record.pairs_used.values() for p in pairs}

    @property
    def inference_units(self) -> dict[Relation, set[ExperimentData]]:
        return {r: set(data) for r, data in self.record.data_used.items()}

    @property
    def pairs_by_relation(self) -> dict[Relation, set[DataPair]]:
        return {r: set(pairs) for r, pairs in self.record.pairs_used.items()}

    def write_results(self, path: str | Path) -> int:
        """Write the evidence pairs of the last run as a TSV report."""
        return write_results(path, self.record.pairs_used)
