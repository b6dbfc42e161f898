"""Gene lists in three parallel identifier namespaces.

A GeneList holds one method's selected genes as HGNC symbols, Ensembl
(stable) ids and Entrez (numeric) ids. Position i refers to the same gene in
every namespace.

Identifier translation itself is done by an external annotation service; this
module only consumes its output as a translation table.
"""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from genesel_ml.errors import DimensionMismatchError

logger = logging.getLogger(__name__)

NAMESPACES = ("symbol", "stable", "numeric")


@dataclass(frozen=True)
class GeneList:
    """Selected genes of one method, positionally aligned across namespaces."""

    symbol_ids: tuple[str, ...]
    stable_ids: tuple[str, ...]
    numeric_ids: tuple[str, ...]

    def __post_init__(self):
        # Accept any sequence but store tuples
        for name in ("symbol_ids", "stable_ids", "numeric_ids"):
            object.__setattr__(self, name, tuple(str(x) for x in getattr(self, name)))

        lengths = {len(self.symbol_ids), len(self.stable_ids), len(self.numeric_ids)}
        if len(lengths) != 1:
            raise DimensionMismatchError(
                "GeneList identifier sequences differ in length: "
                f"symbol={len(self.symbol_ids)}, stable={len(self.stable_ids)}, "
                f"numeric={len(self.numeric_ids)}"
            )

    def __len__(self) -> int:
        return len(self.symbol_ids)

    def ids(self, namespace: str = "symbol") -> tuple[str, ...]:
        """Identifiers in one namespace."""
        if namespace not in NAMESPACES:
            raise ValueError(f"Unknown namespace: {namespace}. Expected one of {NAMESPACES}")
        return getattr(self, f"{namespace}_ids")

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "symbol": list(self.symbol_ids),
                "stable": list(self.stable_ids),
                "numeric": list(self.numeric_ids),
            }
        )

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "symbol_ids": list(self.symbol_ids),
            "stable_ids": list(self.stable_ids),
            "numeric_ids": list(self.numeric_ids),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Iterable[str]]) -> "GeneList":
        return cls(
            symbol_ids=tuple(data.get("symbol_ids", ())),
            stable_ids=tuple(data.get("stable_ids", ())),
            numeric_ids=tuple(data.get("numeric_ids", ())),
        )


def build_gene_list(
    features: Iterable[str],
    translation: pd.DataFrame,
    namespace: str = "symbol",
) -> GeneList:
    """Translate a single-namespace selection into a GeneList.

    Args:
        features: Selected identifiers, best first
        translation: Table with columns [symbol, stable, numeric] from the
            identifier-translation service
        namespace: Namespace of `features`

    Returns:
        GeneList in input order. Identifiers without a translation are dropped;
        duplicates keep their first occurrence.

    Raises:
        ValueError: If namespace is unknown or translation lacks a column
    """
    if namespace not in NAMESPACES:
        raise ValueError(f"Unknown namespace: {namespace}. Expected one of {NAMESPACES}")
    missing_cols = [c for c in NAMESPACES if c not in translation.columns]
    if missing_cols:
        raise ValueError(f"Translation table missing columns: {missing_cols}")

    table = translation[list(NAMESPACES)].dropna().astype(str)
    table = table.drop_duplicates(subset=namespace, keep="first").set_index(namespace, drop=False)

    selected = list(dict.fromkeys(str(f) for f in features))
    mapped = [f for f in selected if f in table.index]
    n_unmapped = len(selected) - len(mapped)
    if n_unmapped:
        pct = 100.0 * n_unmapped / len(selected)
        logger.warning(f"{n_unmapped} of {len(selected)} {namespace} ids ({pct:.1f}%) failed to map")

    rows = table.loc[mapped]
    return GeneList(
        symbol_ids=tuple(rows["symbol"]),
        stable_ids=tuple(rows["stable"]),
        numeric_ids=tuple(rows["numeric"]),
    )


def save_gene_lists(gene_lists: Mapping[str, GeneList], path: str | Path):
    """Save named gene lists as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {name: gl.to_dict() for name, gl in sorted(gene_lists.items())}
    with open(path, "w") as f:
        json.dump(payload, f, indent=2)


def load_gene_lists(path: str | Path) -> dict[str, GeneList]:
    """Load named gene lists saved by save_gene_lists."""
    with open(path) as f:
        payload = json.load(f)
    return {name: GeneList.from_dict(data) for name, data in payload.items()}
