"""
Text category taxonomy and document groupings at several granularities.
"""

import logging
from pathlib import Path

import pandas as pd

from ..exceptions import DataIntegrityError, describe_ids
from .corpus_data_loader import read_table

logger = logging.getLogger(__name__)

TAXONOMY_COLUMNS = ("level", "code", "name", "label", "order")


class CategoryTaxonomy:
    """
    Canonical names, labels and ordering of category codes per granularity.

    The underlying table has one row per (level, code) with columns
    ``level``, ``code``, ``name``, ``label`` and ``order``.
    """

    def __init__(self, table):
        missing = [c for c in TAXONOMY_COLUMNS if c not in table.columns]
        if missing:
            raise DataIntegrityError(f"Taxonomy table lacks columns: {missing}")

        table = table.loc[:, list(TAXONOMY_COLUMNS)].copy()
        table["level"] = table["level"].astype(str)
        table["code"] = table["code"].astype(str)

        dup = table.duplicated(["level", "code"])
        if dup.any():
            pairs = [f"{lv}/{cd}" for lv, cd in table.loc[dup, ["level", "code"]].values]
            raise DataIntegrityError(f"Duplicate taxonomy codes: {describe_ids(pairs)}")

        self.table = table.sort_values(["level", "order"], kind="stable").reset_index(drop=True)

    @classmethod
    def load(cls, source):
        """Build a taxonomy from a path or an existing DataFrame."""
        if isinstance(source, (str, Path)):
            source = read_table(source)
        return cls(source)

    @property
    def levels(self):
        return list(self.table["level"].unique())

    def _level_table(self, level):
        level = str(level)
        rows = self.table[self.table["level"] == level]
        if rows.empty:
            raise DataIntegrityError(f"Unknown taxonomy level: {level}")
        return rows

    def labels(self, level):
        """Display labels of ``level`` in canonical order."""
        return list(self._level_table(level)["label"])

    def label_map(self, level):
        """Mapping code -> display label for ``level``."""
        rows = self._level_table(level)
        return dict(zip(rows["code"], rows["label"]))

    def name_map(self, level):
        rows = self._level_table(level)
        return dict(zip(rows["label"], rows["name"]))


def category_grouping(metadata, column, taxonomy=None, level=None):
    """
    Partition documents into ordered categories.

    Parameters
    ----------
    metadata : pandas.DataFrame
        Aligned metadata indexed by document identifier
    column : str
        Metadata column holding the category codes
    taxonomy : CategoryTaxonomy, optional
        Maps codes to labels and fixes the order. Without it, the sorted raw
        codes are used as labels.
    level : str, optional
        Taxonomy level; required together with ``taxonomy``

    Returns
    -------
    pandas.Series
        Ordered categorical, one label per document

    Raises
    ------
    DataIntegrityError
        If a document has no code or a code is unknown to the taxonomy
    """
    if column not in metadata.columns:
        raise DataIntegrityError(f"No category column '{column}' in metadata")

    codes = metadata[column]
    if codes.isna().any():
        raise DataIntegrityError(
            f"Documents without '{column}' category: {describe_ids(codes.index[codes.isna()])}"
        )
    codes = codes.astype(str)

    if taxonomy is None:
        order = sorted(codes.unique())
        labels = codes
    else:
        if level is None:
            raise ValueError("A taxonomy level is required when a taxonomy is given")
        mapping = taxonomy.label_map(level)
        unknown = sorted(set(codes) - set(mapping))
        if unknown:
            raise DataIntegrityError(
                f"Category codes missing from taxonomy level {level}: {describe_ids(unknown)}"
            )
        labels = codes.map(mapping)
        order = taxonomy.labels(level)

    grouping = pd.Series(
        pd.Categorical(labels, categories=order, ordered=True),
        index=metadata.index,
        name=column,
    )
    logger.info(f"Grouping '{column}': {grouping.nunique()} classes over {len(grouping)} documents")
    return grouping
