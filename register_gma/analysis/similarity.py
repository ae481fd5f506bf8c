"""
Overlap between subspaces via principal angles.
"""

import itertools
from typing import NamedTuple

import numpy as np
import pandas as pd
from scipy import linalg

from ..exceptions import DimensionalityError
from ..subspace.subspace import Subspace


class SubspaceSimilarity(NamedTuple):
    """
    Principal-angle summary of two subspaces.

    Attributes:
        cosines (ndarray): Cosines of the principal angles, descending,
            one per pair up to the smaller rank
        shared_dims (float): Sum of the cosines, a fractional count of
            shared dimensions
        r2 (float): Mean squared cosine, the expected share of variance of a
            random vector in one subspace captured by the other
    """

    cosines: np.ndarray
    shared_dims: float
    r2: float

    @property
    def angles(self):
        """Principal angles in degrees."""
        return np.degrees(np.arccos(self.cosines))


def _as_matrix(basis):
    if isinstance(basis, Subspace):
        return basis.project(which="basis").to_numpy()
    if isinstance(basis, pd.DataFrame):
        return basis.to_numpy(dtype=float)
    matrix = np.asarray(basis, dtype=float)
    if matrix.ndim == 1:
        matrix = matrix[:, np.newaxis]
    return matrix


def subspace_similarity(a, b):
    """
    Compare the spans of two bases.

    Parameters
    ----------
    a, b : Subspace or array-like
        Bases over the same feature space (features x dims); they may have
        different numbers of dimensions and need not be orthonormal

    Returns
    -------
    SubspaceSimilarity
        All three views derived from one singular value decomposition

    Raises
    ------
    DimensionalityError
        If the feature dimensionality differs
    """
    ma = _as_matrix(a)
    mb = _as_matrix(b)
    if ma.shape[0] != mb.shape[0]:
        raise DimensionalityError(
            f"Feature dimensionality differs: {ma.shape[0]} vs {mb.shape[0]}"
        )

    qa = linalg.orth(ma)
    qb = linalg.orth(mb)
    cosines = linalg.svd(qa.T @ qb, compute_uv=False)
    cosines = np.clip(np.sort(cosines)[::-1], 0.0, 1.0)

    return SubspaceSimilarity(
        cosines=cosines,
        shared_dims=float(cosines.sum()),
        r2=float(np.mean(cosines ** 2)) if len(cosines) else 0.0,
    )


def similarity_table(subspaces):
    """
    Pairwise similarity of named subspaces.

    Parameters
    ----------
    subspaces : dict
        Name -> Subspace

    Returns
    -------
    pandas.DataFrame
        One row per unordered pair with columns ``a``, ``b``, ``dims_a``,
        ``dims_b``, ``shared_dims``, ``r2``
    """
    rows = []
    for (name_a, sa), (name_b, sb) in itertools.combinations(subspaces.items(), 2):
        sim = subspace_similarity(sa, sb)
        rows.append({
            "a": name_a,
            "b": name_b,
            "dims_a": sa.n_dims,
            "dims_b": sb.n_dims,
            "shared_dims": sim.shared_dims,
            "r2": sim.r2,
        })
    return pd.DataFrame(rows, columns=["a", "b", "dims_a", "dims_b", "shared_dims", "r2"])
