"""Tab-separated report of the data pairs behind inferred relations."""

from __future__ import annotations

import csv
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from causalpath.detectors import CorrelationCapable, SignificanceCapable

if TYPE_CHECKING:
    from causalpath.data import ExperimentData
    from causalpath.network import Relation

logger = logging.getLogger(__name__)

RELATION_COLUMNS = ["Source", "Relation", "Target", "Sites"]
CORRELATION_COLUMNS = ["Source data ID", "Target data ID", "Correlation", "Correlation pval"]
CHANGE_COLUMNS = [
    "Source data ID",
    "Source change",
    "Source change pval",
    "Target data ID",
    "Target change",
    "Target change pval",
]


def _p_value_text(datum: ExperimentData) -> str:
    if isinstance(datum.detector, SignificanceCapable):
        return str(datum.detector.get_p_value(datum))
    return ""


def _row_key(item: tuple[Relation, ExperimentData, ExperimentData]) -> tuple[str, ...]:
    relation, source, target = item
    return (relation.source, relation.type.label, relation.target, source.id, target.id)


def write_results(
    path: str | Path,
    pairs_by_relation: Mapping[Relation, set[tuple[ExperimentData, ExperimentData]]],
) -> int:
    """Write one row per (relation, source datum, target datum).

    Correlation columns are used when the relations were evaluated with a
    correlation detector, otherwise the change value and p-value of each side.
    Nothing is written when there are no pairs. Returns the number of rows.
    """
    rows = sorted(
        ((relation, source, target) for relation, pairs in pairs_by_relation.items() for source, target in pairs),
        key=_row_key,
    )
    if not rows:
        logger.warning("No inference pairs to report, skipping %s", path)
        return 0

    detector = rows[0][0].change_detector
    correlation = detector if isinstance(detector, CorrelationCapable) else None

    with Path(path).open("w", newline="") as f:
        writer = csv.writer(f, delimiter="\t", lineterminator="\n")
        writer.writerow(RELATION_COLUMNS + (CORRELATION_COLUMNS if correlation else CHANGE_COLUMNS))

        for relation, source, target in rows:
            prefix = [relation.source, relation.type.label, relation.target, relation.sites_in_string()]
            if correlation is not None:
                value, p_value = correlation.calc_correlation(source, target)
                writer.writerow(prefix + [source.id, target.id, value, p_value])
            else:
                writer.writerow(
                    prefix
                    + [source.id, source.change_value, _p_value_text(source)]
                    + [target.id, target.change_value, _p_value_text(target)]
                )

    logger.info("Wrote %d inference pairs to %s", len(rows), path)
    return len(rows)
