"""Readers for the tabular inputs of a causality search.

Experiment data file (tab-separated, with header)::

    ID  Gene  Type  Effect  Change  [Sites]  [Values]  [Pval]

``Sites`` lists phospho-sites separated by ``;``; an entry is either a bare
site (``S473``, on the row's gene) or ``GENE:S473``. ``Values`` are
comma-separated per-sample measurements, ``NA`` for missing.

Relation file (tab-separated, with header)::

    Source  Type  Target  [Sites]
"""

from __future__ import annotations

import csv
import math
from pathlib import Path
from typing import Optional

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
from causalpath.detectors import SignificanceDetector, TwoDataChangeDetector
from causalpath.network import Relation, RelationType

_DATA_CLASSES: dict[DataType, type[ExperimentData]] = {
    DataType.PROTEIN: ProteinData,
    DataType.RNA: RNAData,
    DataType.ACTIVITY: ActivityData,
    DataType.PHOSPHOPROTEIN: PhosphoProteinData,
}

DATA_REQUIRED_COLUMNS = ("ID", "Gene", "Type", "Effect", "Change")
RELATION_REQUIRED_COLUMNS = ("Source", "Type", "Target")


def _read_rows(path: str | Path, required: tuple[str, ...]) -> list[tuple[int, dict[str, str]]]:
    with Path(path).open(newline="") as f:
        reader = csv.DictReader(f, delimiter="\t")
        missing = [c for c in required if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path}: missing column(s) {', '.join(missing)}")
        rows: list[tuple[int, dict[str, str]]] = []
        # header is line 1
        for line, row in enumerate(reader, start=2):
            short = [c for c in required if row.get(c) is None]
            if short:
                raise ValueError(f"{path}, line {line}: no value for column(s) {', '.join(short)}")
            rows.append((line, row))
        return rows


def _parse_float(text: str | None) -> float:
    if text is None or text.strip() in ("", "NA", "NaN", "nan"):
        return math.nan
    return float(text)


def _parse_sites(text: str, gene: str) -> dict[str, frozenset[ProteinSite]]:
    sites: dict[str, set[ProteinSite]] = {}
    for entry in filter(None, (s.strip() for s in text.split(";"))):
        site_gene, _, site = entry.rpartition(":")
        sites.setdefault(site_gene or gene, set()).add(ProteinSite.parse(site))
    return {g: frozenset(s) for g, s in sites.items()}


def load_data(path: str | Path, p_threshold: float = 0.05) -> dict[str, GeneWithData]:
    """Read experiment data and group it by gene.

    When a ``Pval`` column is present, data with a p-value share one
    ``SignificanceDetector`` that calls changes at ``p_threshold``.
    """
    genes: dict[str, GeneWithData] = {}
    p_values: dict[str, float] = {}
    detector = SignificanceDetector(p_values=p_values, threshold=p_threshold)

    for line, row in _read_rows(path, DATA_REQUIRED_COLUMNS):
        try:
            data_type = DataType.from_name(row["Type"])
            gene = row["Gene"].strip()
            kwargs: dict[str, object] = {
                "id": row["ID"].strip(),
                "gene": gene,
                "effect": int(row["Effect"]),
                "change_value": _parse_float(row["Change"]),
            }
            if row.get("Values"):
                kwargs["values"] = tuple(_parse_float(v) for v in row["Values"].split(","))
            if data_type is DataType.PHOSPHOPROTEIN:
                kwargs["sites"] = _parse_sites(row.get("Sites") or "", gene)
            datum = _DATA_CLASSES[data_type](**kwargs)  # type: ignore[arg-type]
        except (ValueError, TypeError) as e:
            raise ValueError(f"{path}, line {line}: {e}") from e

        p_value = _parse_float(row.get("Pval"))
        if not math.isnan(p_value):
            p_values[datum.id] = p_value
            datum.detector = detector

        genes.setdefault(gene, GeneWithData(gene)).add(datum)

    return genes


def load_relations(
    path: str | Path,
    genes: dict[str, GeneWithData],
    change_detector: Optional[TwoDataChangeDetector] = None,
) -> set[Relation]:
    """Read relations and attach them to the given gene data.

    Genes without data get an empty record, which is added to ``genes``.
    """
    relations: set[Relation] = set()
    for line, row in _read_rows(path, RELATION_REQUIRED_COLUMNS):
        try:
            source = row["Source"].strip()
            target = row["Target"].strip()
            rel_type = RelationType.from_name(row["Type"])
            sites = frozenset(
                ProteinSite.parse(s) for s in (row.get("Sites") or "").split(";") if s.strip()
            )
        except ValueError as e:
            raise ValueError(f"{path}, line {line}: {e}") from e

        kwargs: dict[str, object] = {}
        if change_detector is not None:
            kwargs["change_detector"] = change_detector
        relations.add(
            Relation(
                source=source,
                target=target,
                type=rel_type,
                source_data=genes.setdefault(source, GeneWithData(source)),
                target_data=genes.setdefault(target, GeneWithData(target)),
                sites=sites,
                **kwargs,  # type: ignore[arg-type]
            )
        )
    return relations
