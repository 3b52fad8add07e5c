"""Tests for the evidence report writer."""

from __future__ import annotations

from pathlib import Path

from causalpath.data import ActivityData, GeneWithData, PhosphoProteinData, ProteinData, ProteinSite
from causalpath.detectors import CorrelationDetector, SignificanceDetector
from causalpath.network import Relation, RelationType
from causalpath.report import write_results
from causalpath.searcher import CausalitySearcher


def _read(path: Path) -> list[list[str]]:
    return [line.split("\t") for line in path.read_text().splitlines()]


def test_change_report(tmp_path: Path) -> None:
    detector = SignificanceDetector(p_values={"a": 0.01, "b": 0.02})
    source = ActivityData(id="a", gene="A", change_value=2.0, detector=detector)
    target = ProteinData(id="b", gene="B", change_value=1.5, detector=detector)
    relation = Relation(
        "A", "B", RelationType.UPREGULATES_EXPRESSION, GeneWithData("A", [source]), GeneWithData("B", [target])
    )
    searcher = CausalitySearcher()
    searcher.run({relation})

    path = tmp_path / "causative.tsv"
    assert searcher.write_results(path) == 1

    header, row = _read(path)
    assert header == [
        "Source",
        "Relation",
        "Target",
        "Sites",
        "Source data ID",
        "Source change",
        "Source change pval",
        "Target data ID",
        "Target change",
        "Target change pval",
    ]
    assert row == ["A", "upregulates-expression", "B", "", "a", "2.0", "0.01", "b", "1.5", "0.02"]


def test_change_report_without_p_values(tmp_path: Path) -> None:
    kinase = ActivityData(id="k", gene="K", change_value=1.0)
    phospho = PhosphoProteinData(
        id="s-473",
        gene="S",
        change_value=-1.0,
        sites={"S": frozenset({ProteinSite.parse("S473")})},
    )
    relation = Relation(
        "K",
        "S",
        RelationType.DEPHOSPHORYLATES,
        GeneWithData("K", [kinase]),
        GeneWithData("S", [phospho]),
        sites=frozenset({ProteinSite.parse("S473"), ProteinSite.parse("T308")}),
    )
    searcher = CausalitySearcher()
    searcher.run({relation})

    path = tmp_path / "causative.tsv"
    searcher.write_results(path)

    _, row = _read(path)
    assert row == ["K", "dephosphorylates", "S", "S473;T308", "k", "1.0", "", "s-473", "-1.0", ""]


def test_correlation_report(tmp_path: Path) -> None:
    source = ProteinData(id="a", gene="A", values=(1.0, 2.0, 3.0, 4.0, 5.0))
    target = ProteinData(id="b", gene="B", values=(1.0, 2.0, 3.0, 4.0, 5.0))
    relation = Relation(
        "A",
        "B",
        RelationType.UPREGULATES_EXPRESSION,
        GeneWithData("A", [source]),
        GeneWithData("B", [target]),
        change_detector=CorrelationDetector(),
    )
    searcher = CausalitySearcher()
    assert searcher.run({relation}) == {relation}

    path = tmp_path / "correlation.tsv"
    searcher.write_results(path)

    header, row = _read(path)
    assert header[4:] == ["Source data ID", "Target data ID", "Correlation", "Correlation pval"]
    assert row[:6] == ["A", "upregulates-expression", "B", "", "a", "b"]
    assert float(row[6]) > 0.99
    assert float(row[7]) < 0.05


def test_rows_are_sorted(tmp_path: Path) -> None:
    source = GeneWithData("A", [ActivityData(id="a", gene="A", change_value=1.0)])
    targets = {
        name: GeneWithData(name, [ProteinData(id=name.lower(), gene=name, change_value=1.0)])
        for name in ("C", "B", "D")
    }
    relations = {
        Relation("A", name, RelationType.UPREGULATES_EXPRESSION, source, gene) for name, gene in targets.items()
    }
    searcher = CausalitySearcher()
    searcher.run(relations)

    path = tmp_path / "causative.tsv"
    assert searcher.write_results(path) == 3
    assert [row[2] for row in _read(path)[1:]] == ["B", "C", "D"]


def test_nothing_written_without_pairs(tmp_path: Path) -> None:
    path = tmp_path / "empty.tsv"

    assert write_results(path, {}) == 0
    assert not path.exists()
