"""
Corpus feature/metadata loading, alignment and size filtering.
"""

import logging
from pathlib import Path
from typing import NamedTuple

import numpy as np
import pandas as pd

from ..exceptions import DataIntegrityError, describe_ids

logger = logging.getLogger(__name__)


class CorpusData(NamedTuple):
    """
    Aligned feature and metadata tables.

    Both frames share the same index (document identifiers) in the same order.
    """

    features: pd.DataFrame
    metadata: pd.DataFrame

    @property
    def ids(self):
        return self.features.index

    def __len__(self):
        return len(self.features)


def read_table(filepath, id_column=None):
    """
    Read a CSV or TSV table, optionally gzipped.

    Parameters
    ----------
    filepath : str or Path
        Path to the table. ``.tsv``/``.txt`` (with or without ``.gz``) are
        tab-separated, everything else comma-separated.
    id_column : str, optional
        Column to keep as a string identifier column

    Returns
    -------
    pandas.DataFrame
    """
    filepath = Path(filepath)
    suffixes = [s.lower() for s in filepath.suffixes]
    if suffixes and suffixes[-1] == ".gz":
        suffixes = suffixes[:-1]
    sep = "\t" if suffixes and suffixes[-1] in (".tsv", ".txt") else ","

    dtype = {id_column: str} if id_column else None
    table = pd.read_csv(filepath, sep=sep, dtype=dtype)
    logger.info(f"Read {len(table)} rows x {table.shape[1]} columns from {filepath}")
    return table


class CorpusDataLoader:
    """
    Load and align per-document feature counts with their metadata.

    Parameters
    ----------
    id_column : str, optional
        Identifier column shared by both tables
    word_column : str, optional
        Word count column, looked up in the features first, then metadata
    sentence_column : str, optional
        Sentence count column, looked up the same way
    count_columns : sequence of str, optional
        Size columns excluded from the feature matrix
    """

    def __init__(self, id_column="id", word_column="word", sentence_column="sentence",
                 count_columns=("token", "word", "sentence")):
        self.id_column = id_column
        self.word_column = word_column
        self.sentence_column = sentence_column
        self.count_columns = tuple(count_columns)

    @classmethod
    def from_config(cls, data_config):
        return cls(
            id_column=data_config.id_column,
            word_column=data_config.word_column,
            sentence_column=data_config.sentence_column,
            count_columns=data_config.count_columns,
        )

    def load(self, features_path, metadata_path):
        """
        Read both tables from disk and align them.

        Returns
        -------
        CorpusData
        """
        features = read_table(features_path, id_column=self.id_column)
        metadata = read_table(metadata_path, id_column=self.id_column)
        return self.align(features, metadata)

    def _indexed(self, table, name):
        if table.index.name == self.id_column:
            indexed = table.copy()
        elif self.id_column in table.columns:
            indexed = table.set_index(self.id_column)
        else:
            raise DataIntegrityError(
                f"{name} table has no identifier column '{self.id_column}'"
            )
        indexed.index = indexed.index.astype(str)

        duplicated = indexed.index[indexed.index.duplicated()].unique()
        if len(duplicated) > 0:
            raise DataIntegrityError(
                f"Duplicate identifiers in {name} table: {describe_ids(duplicated)}"
            )
        return indexed

    def align(self, features, metadata):
        """
        Align metadata rows to the feature table.

        Parameters
        ----------
        features : pandas.DataFrame
            Feature table, keyed by the identifier column or index
        metadata : pandas.DataFrame
            Metadata table, keyed the same way

        Returns
        -------
        CorpusData
            Both tables indexed by identifier, in feature-table order

        Raises
        ------
        DataIntegrityError
            If identifiers are duplicated or a feature row has no metadata
        """
        features = self._indexed(features, "feature")
        metadata = self._indexed(metadata, "metadata")

        missing = features.index.difference(metadata.index, sort=False)
        if len(missing) > 0:
            raise DataIntegrityError(
                f"Feature rows without metadata: {describe_ids(missing)}"
            )

        n_orphans = len(metadata) - len(features)
        if n_orphans > 0:
            logger.info(f"Dropping {n_orphans} metadata rows without feature data")

        metadata = metadata.loc[features.index]
        logger.info(f"Aligned {len(features)} documents")
        return CorpusData(features=features, metadata=metadata)

    def _size_column(self, corpus, column):
        if column in corpus.features.columns:
            return corpus.features[column]
        if column in corpus.metadata.columns:
            return corpus.metadata[column]
        raise DataIntegrityError(f"No size column '{column}' in features or metadata")

    def size_mask(self, corpus, min_words=100, min_sentences=1):
        """Boolean Series: True for texts meeting both size thresholds."""
        words = self._size_column(corpus, self.word_column)
        sentences = self._size_column(corpus, self.sentence_column)
        return (words >= min_words) & (sentences >= min_sentences)

    def filter_min_size(self, corpus, min_words=100, min_sentences=1, group_column=None):
        """
        Drop texts that are too short from both tables.

        Parameters
        ----------
        corpus : CorpusData
            Aligned input tables
        min_words : int, optional
            Minimum word count
        min_sentences : int, optional
            Minimum sentence count
        group_column : str, optional
            Metadata column for which exclusion rates are logged

        Returns
        -------
        CorpusData
            Filtered tables, relative order preserved
        """
        keep = self.size_mask(corpus, min_words, min_sentences)
        n_dropped = int((~keep).sum())
        logger.info(
            f"Size filter (words >= {min_words}, sentences >= {min_sentences}) "
            f"excludes {n_dropped} of {len(keep)} texts ({n_dropped / max(len(keep), 1):.1%})"
        )

        if group_column is not None and n_dropped > 0:
            rates = exclusion_rates(corpus.metadata, keep, group_column)
            for group, row in rates.iterrows():
                logger.info(
                    f"  {group}: {int(row['excluded'])}/{int(row['total'])} "
                    f"excluded ({row['rate']:.1%})"
                )

        return CorpusData(
            features=corpus.features.loc[keep.values],
            metadata=corpus.metadata.loc[keep.values],
        )

    def feature_matrix(self, corpus, columns=None):
        """
        Select the numeric feature columns of an aligned corpus.

        Parameters
        ----------
        corpus : CorpusData
            Aligned input tables
        columns : list, optional
            Explicit feature columns; defaults to every numeric column that is
            not a size count

        Returns
        -------
        pandas.DataFrame
            Float feature matrix indexed by document identifier

        Raises
        ------
        DataIntegrityError
            If a selected column is not numeric or any value is non-finite
        """
        if columns is None:
            columns = [c for c in corpus.features.columns if c not in self.count_columns]

        matrix = corpus.features[list(columns)]
        non_numeric = [c for c in matrix.columns if not pd.api.types.is_numeric_dtype(matrix[c])]
        if non_numeric:
            raise DataIntegrityError(f"Non-numeric feature columns: {non_numeric}")

        matrix = matrix.astype(float)
        check_finite(matrix)
        return matrix


def check_finite(matrix, name="feature matrix"):
    """
    Raise DataIntegrityError naming the rows of ``matrix`` holding NaN or inf.
    """
    values = np.asarray(matrix, dtype=float)
    bad_rows = ~np.isfinite(values).all(axis=1)
    if bad_rows.any():
        if isinstance(matrix, pd.DataFrame):
            ids = matrix.index[bad_rows]
        else:
            ids = np.flatnonzero(bad_rows)
        raise DataIntegrityError(f"Non-finite values in {name}: {describe_ids(ids)}")


def exclusion_rates(metadata, keep, group_column):
    """
    Per-group counts of excluded texts.

    Parameters
    ----------
    metadata : pandas.DataFrame
        Metadata of the unfiltered corpus
    keep : pandas.Series of bool
        Filter mask aligned with ``metadata``
    group_column : str
        Grouping column

    Returns
    -------
    pandas.DataFrame
        Columns ``total``, ``excluded``, ``rate`` indexed by group
    """
    if group_column not in metadata.columns:
        raise DataIntegrityError(f"No grouping column '{group_column}' in metadata")

    excluded = pd.Series(~np.asarray(keep, dtype=bool), index=metadata.index)
    grouped = excluded.groupby(metadata[group_column], sort=True)
    table = pd.DataFrame({"total": grouped.size(), "excluded": grouped.sum()})
    table["rate"] = table["excluded"] / table["total"]
    return table
