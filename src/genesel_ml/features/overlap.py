"""Pairwise overlap between gene lists selected by different methods.

Coefficients (computed on one identifier namespace, symbols by default):

- jaccard: |A & B| / |A | B|; 1.0 when both sets are empty
- overlap (Szymkiewicz-Simpson): |A & B| / min(|A|, |B|); 1.0 when both sets
  are empty, 0.0 when exactly one is empty
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import numpy as np
import pandas as pd

from genesel_ml.errors import EmptyCollectionError, MethodNotFoundError
from genesel_ml.features.gene_lists import GeneList

logger = logging.getLogger(__name__)

COEFFICIENTS = ("jaccard", "overlap")


def jaccard_coefficient(a: Iterable[str], b: Iterable[str]) -> float:
    """Jaccard index of two sets.

    Example:
        >>> jaccard_coefficient({"TP53", "EGFR", "BRCA1", "MYC"}, {"TP53", "EGFR", "KRAS"})
        0.4
    """
    a, b = set(a), set(b)
    union = a | b
    if not union:
        return 1.0
    return len(a & b) / len(union)


def overlap_coefficient(a: Iterable[str], b: Iterable[str]) -> float:
    """Szymkiewicz-Simpson overlap coefficient of two sets.

    Example:
        >>> round(overlap_coefficient({"TP53", "EGFR", "BRCA1", "MYC"}, {"TP53", "EGFR", "KRAS"}), 4)
        0.6667
    """
    a, b = set(a), set(b)
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return len(a & b) / min(len(a), len(b))


_COEFFICIENT_FUNCS = {
    "jaccard": jaccard_coefficient,
    "overlap": overlap_coefficient,
}


@dataclass(frozen=True)
class OverlapMatrix:
    """Symmetric, read-only method x method coefficient matrix."""

    methods: tuple[str, ...]
    values: tuple[tuple[float, ...], ...]
    coefficient: str = "jaccard"

    def __getitem__(self, pair: tuple[str, str]) -> float:
        a, b = pair
        return self.values[self._index(a)][self._index(b)]

    def _index(self, method: str) -> int:
        try:
            return self.methods.index(method)
        except ValueError:
            raise MethodNotFoundError(method, available=list(self.methods)) from None

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            np.array(self.values, dtype=float),
            index=list(self.methods),
            columns=list(self.methods),
        )

    def pairs(self) -> list[tuple[str, str, float]]:
        """Unordered off-diagonal pairs as (method_a, method_b, value)."""
        out = []
        for i, a in enumerate(self.methods):
            for j in range(i + 1, len(self.methods)):
                out.append((a, self.methods[j], self.values[i][j]))
        return out


def _as_symbol_set(genes: GeneList | Iterable[str], namespace: str) -> set[str]:
    if isinstance(genes, GeneList):
        return set(genes.ids(namespace))
    return {str(g) for g in genes}


def compute_overlap_matrix(
    gene_lists: Mapping[str, GeneList | Iterable[str]],
    coefficient: str = "jaccard",
    namespace: str = "symbol",
) -> OverlapMatrix:
    """Compute pairwise coefficients among named gene lists.

    Args:
        gene_lists: Dict mapping method -> GeneList (or plain identifiers)
        coefficient: "jaccard" or "overlap"
        namespace: GeneList namespace to compare on

    Returns:
        OverlapMatrix over methods sorted by name, diagonal 1.0

    Raises:
        EmptyCollectionError: If fewer than two lists are given
        ValueError: If coefficient is unknown
    """
    if coefficient not in _COEFFICIENT_FUNCS:
        raise ValueError(f"Unknown coefficient: {coefficient}. Expected one of {COEFFICIENTS}")
    if len(gene_lists) < 2:
        raise EmptyCollectionError(
            f"Overlap needs at least two gene lists, got {len(gene_lists)}"
        )

    func = _COEFFICIENT_FUNCS[coefficient]
    methods = tuple(sorted(gene_lists))
    sets = {m: _as_symbol_set(gene_lists[m], namespace) for m in methods}

    n = len(methods)
    matrix = np.eye(n, dtype=float)
    for i in range(n):
        for j in range(i + 1, n):
            value = func(sets[methods[i]], sets[methods[j]])
            matrix[i, j] = matrix[j, i] = value

    logger.info(f"Computed {coefficient} overlap for {n} gene lists")
    for i in range(n):
        logger.debug(f"  {methods[i]}: {len(sets[methods[i]])} genes")

    return OverlapMatrix(
        methods=methods,
        values=tuple(tuple(float(v) for v in row) for row in matrix),
        coefficient=coefficient,
    )


def gene_membership_frame(
    gene_lists: Mapping[str, GeneList | Iterable[str]],
    namespace: str = "symbol",
) -> pd.DataFrame:
    """Boolean gene x method membership table (input for UpSet-style plots).

    Rows are sorted by number of methods (desc), then gene (asc).
    """
    methods = sorted(gene_lists)
    sets = {m: _as_symbol_set(gene_lists[m], namespace) for m in methods}
    genes = sorted(set().union(*sets.values())) if sets else []

    df = pd.DataFrame(
        {m: [g in sets[m] for g in genes] for m in methods},
        index=pd.Index(genes, name="gene"),
    )
    df["n_methods"] = df[methods].sum(axis=1).astype(int) if methods else 0
    return df.sort_values(["n_methods"], ascending=False, kind="mergesort")
