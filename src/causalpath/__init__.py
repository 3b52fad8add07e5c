"""
Causal reasoning over prior-knowledge relations and proteomic data.

Matches measured changes in protein abundance, phosphorylation and activity
with signed, typed relations between genes, and reports which relations the
data explain or contradict.
"""

from causalpath.data import (
    ActivityData,
    DataType,
    ExperimentData,
    GeneWithData,
    PhosphoProteinData,
    ProteinData,
    ProteinSite,
    RNAData,
)
from causalpath.network import Relation, RelationCategory, RelationType, UnhandledRelationTypeError
from causalpath.searcher import CausalitySearcher, SearcherConfig

__all__ = [
    "ActivityData",
    "CausalitySearcher",
    "DataType",
    "ExperimentData",
    "GeneWithData",
    "PhosphoProteinData",
    "ProteinData",
    "ProteinSite",
    "RNAData",
    "Relation",
    "RelationCategory",
    "RelationType",
    "SearcherConfig",
    "UnhandledRelationTypeError",
]
