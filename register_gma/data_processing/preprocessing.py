"""
Feature standardization and transformation for register feature matrices.
"""

import logging

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from ..exceptions import DataIntegrityError
from .corpus_data_loader import check_finite

logger = logging.getLogger(__name__)


def _wrap_like(template, values):
    if isinstance(template, pd.DataFrame):
        return pd.DataFrame(values, index=template.index, columns=template.columns)
    return values


def column_variances(data):
    """Population variance of every column."""
    return np.asarray(data, dtype=float).var(axis=0)


def constant_mask(data):
    """
    True for columns holding a single repeated value.

    Judged on the values rather than the variance, which rounding leaves
    slightly above zero for constants such as 0.1.
    """
    values = np.asarray(data, dtype=float)
    return np.ptp(values, axis=0) == 0


def drop_zero_variance(data, tol=0.0):
    """
    Remove constant columns.

    Parameters
    ----------
    data : pandas.DataFrame
        Feature matrix
    tol : float, optional
        Columns with variance <= tol are removed as well as exact constants

    Returns
    -------
    pandas.DataFrame
        Matrix without the constant columns
    """
    variances = pd.Series(column_variances(data), index=data.columns)
    constant = variances.index[constant_mask(data) | (variances.to_numpy() <= tol)]
    if len(constant) > 0:
        logger.warning(f"Dropping {len(constant)} constant features: {list(constant)}")
    return data.drop(columns=constant)


def standardize(data, near_zero_variance=1e-8):
    """
    Scale every column to zero mean and unit variance.

    Parameters
    ----------
    data : array-like or pandas.DataFrame
        Input data matrix
    near_zero_variance : float, optional
        Columns with a variance below this are reported as degenerate

    Returns
    -------
    array-like or pandas.DataFrame
        z-scores, same type and labels as the input

    Raises
    ------
    DataIntegrityError
        If the input holds non-finite values or a zero-variance column
    """
    check_finite(data)
    variances = column_variances(data)

    zero = np.flatnonzero(constant_mask(data))
    if len(zero) > 0:
        names = list(data.columns[zero]) if isinstance(data, pd.DataFrame) else list(zero)
        raise DataIntegrityError(f"Zero-variance feature columns: {names}")

    tiny = np.flatnonzero(variances < near_zero_variance)
    if len(tiny) > 0:
        names = list(data.columns[tiny]) if isinstance(data, pd.DataFrame) else list(tiny)
        logger.warning(f"Near-zero variance features (results are low-confidence): {names}")

    scaled = StandardScaler().fit_transform(np.asarray(data, dtype=float))
    return _wrap_like(data, scaled)


def signed_log_transform(data, base=np.e):
    """
    Compress heavy tails with sign(x) * log(1 + |x|), in the given base.

    Smooth, odd and monotonic; 0 maps to 0 exactly.

    Parameters
    ----------
    data : array-like or pandas.DataFrame
        Usually z-scores
    base : float, optional
        Logarithm base, must be > 1

    Returns
    -------
    array-like or pandas.DataFrame
        Transformed values, same type and labels as the input
    """
    if not base > 1:
        raise ValueError(f"Logarithm base must be > 1, got {base}")

    values = np.asarray(data, dtype=float)
    transformed = np.sign(values) * np.log1p(np.abs(values)) / np.log(base)
    if np.ndim(data) == 0:
        return float(transformed)
    return _wrap_like(data, transformed)
