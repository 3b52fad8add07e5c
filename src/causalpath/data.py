"""Experiment data attached to genes.

Each measurement is one ``ExperimentData`` record owned by a gene. The record
family is closed and keyed by ``DataType``:

- **ProteinData**: total protein abundance.
- **RNAData**: transcript abundance, usable as expression evidence.
- **PhosphoProteinData**: abundance of a protein phosphorylated at one or more sites.
- **ActivityData**: an inferred or annotated activity state of the gene product.

Records compare by identity. Two measurements with identical values are still
two pieces of evidence and must never collapse into one set member.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Optional

if TYPE_CHECKING:
    from causalpath.detectors import OneDataChangeDetector


class DataType(str, Enum):
    """Kinds of measurements a gene can carry."""

    PROTEIN = "protein"
    PHOSPHOPROTEIN = "phosphoprotein"
    ACTIVITY = "activity"
    RNA = "rna"

    @classmethod
    def from_name(cls, name: str) -> DataType:
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown data type '{name}'") from None


VALID_EFFECTS = frozenset({-1, 0, 1})

_SITE_PATTERN = re.compile(r"^([A-Za-z]?)(\d+)$")


@dataclass(frozen=True)
class ProteinSite:
    """A residue position on a protein, e.g. ``S473``."""

    residue: str
    position: int
    effect: int = 0

    @classmethod
    def parse(cls, text: str, effect: int = 0) -> ProteinSite:
        """Parse ``S473`` (or a bare ``473``) into a site."""
        match = _SITE_PATTERN.match(text.strip())
        if not match:
            raise ValueError(f"Malformed protein site '{text}'")
        return cls(residue=match.group(1).upper(), position=int(match.group(2)), effect=effect)

    def __str__(self) -> str:
        return f"{self.residue}{self.position}"


def _check_effect(effect: int) -> None:
    if effect not in VALID_EFFECTS:
        raise ValueError(f"Effect must be one of -1, 0, 1, got {effect!r}")


@dataclass(eq=False)
class ExperimentData:
    """A single measurement on a gene.

    ``effect`` is the intrinsic direction the measured quantity has on the
    gene's activity: +1 activating, -1 inhibiting, 0 unknown.
    ``change_value`` is the magnitude of the detected change, and ``values``
    holds per-sample measurements when a correlation detector is used.
    """

    data_type: ClassVar[DataType]

    id: str
    gene: str
    effect: int = 1
    change_value: float = 0.0
    values: Optional[Sequence[float]] = None
    detector: Optional[OneDataChangeDetector] = None

    def __post_init__(self) -> None:
        _check_effect(self.effect)

    def change_sign(self) -> int:
        """Sign of the detected change, deferring to the attached detector if any."""
        if self.detector is not None:
            return self.detector.get_change_sign(self)
        if math.isnan(self.change_value) or self.change_value == 0:
            return 0
        return 1 if self.change_value > 0 else -1

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, gene={self.gene!r}, effect={self.effect})"


@dataclass(eq=False, repr=False)
class ProteinData(ExperimentData):
    data_type: ClassVar[DataType] = DataType.PROTEIN


@dataclass(eq=False, repr=False)
class RNAData(ExperimentData):
    data_type: ClassVar[DataType] = DataType.RNA


@dataclass(eq=False, repr=False)
class ActivityData(ExperimentData):
    data_type: ClassVar[DataType] = DataType.ACTIVITY


@dataclass(eq=False, repr=False)
class PhosphoProteinData(ExperimentData):
    """Phosphorylation measured at one or more sites.

    A phosphopeptide can map to several proteins, so each site is stored
    under the gene it belongs to.
    """

    data_type: ClassVar[DataType] = DataType.PHOSPHOPROTEIN

    effect: int = 0
    sites: dict[str, frozenset[ProteinSite]] = field(default_factory=dict)

    def genes_with_sites(self) -> set[tuple[str, int]]:
        """Return every (gene, position) pair this datum covers."""
        return {(gene, site.position) for gene, sites in self.sites.items() for site in sites}


class GeneWithData:
    """A gene and every experiment datum attached to it."""

    def __init__(self, gene: str, data: Iterable[ExperimentData] = ()) -> None:
        self.gene = gene
        self._data: dict[DataType, set[ExperimentData]] = {}
        for datum in data:
            self.add(datum)

    def add(self, datum: ExperimentData) -> None:
        if datum.gene != self.gene:
            raise ValueError(f"Datum {datum.id} belongs to {datum.gene}, not {self.gene}")
        self._data.setdefault(datum.data_type, set()).add(datum)

    def get_data(self, *types: DataType) -> set[ExperimentData]:
        """Return a new set with all data of the given types."""
        result: set[ExperimentData] = set()
        for data_type in types:
            result.update(self._data.get(data_type, ()))
        return result

    def has_data(self, data_type: DataType) -> bool:
        return bool(self._data.get(data_type))

    def data_types(self) -> set[DataType]:
        return {t for t, data in self._data.items() if data}

    def __len__(self) -> int:
        return sum(len(data) for data in self._data.values())

    def __repr__(self) -> str:
        return f"GeneWithData({self.gene!r}, n={len(self)})"
