"""
PCA and LDA subspace construction.
"""

import logging

import numpy as np
import pandas as pd
from scipy import linalg
from sklearn.decomposition import PCA
from sklearn.discriminant_analysis import LinearDiscriminantAnalysis

from ..data_processing.corpus_data_loader import check_finite
from ..exceptions import DataIntegrityError, DimensionalityError
from .subspace import Subspace, orient_signs

logger = logging.getLogger(__name__)


def _feature_names(data):
    if isinstance(data, pd.DataFrame):
        return [str(c) for c in data.columns]
    return None


def build_pca(data, n_dims=None):
    """
    Principal component basis of ``data``.

    Parameters
    ----------
    data : array-like or pandas.DataFrame
        Observations x features, usually (signed-log) z-scores
    n_dims : int, optional
        Number of leading components to keep; all by default

    Returns
    -------
    Subspace
        Orthonormal basis ordered by descending explained variance

    Raises
    ------
    DataIntegrityError
        If the data holds non-finite values
    DimensionalityError
        If more components are requested than min(n_samples, n_features)
    """
    check_finite(data)
    values = np.asarray(data, dtype=float)
    n_samples, n_features = values.shape
    bound = min(n_samples, n_features)
    if n_dims is None:
        n_dims = bound
    if not 1 <= n_dims <= bound:
        raise DimensionalityError(
            f"PCA supports 1..{bound} dimensions for {n_samples}x{n_features} data, "
            f"requested {n_dims}"
        )

    pca = PCA(n_components=n_dims, svd_solver="full")
    pca.fit(values)
    basis = orient_signs(pca.components_.T)

    logger.info(
        f"PCA: {n_dims} dimensions explain "
        f"{pca.explained_variance_ratio_.sum():.1%} of the variance"
    )
    return Subspace(
        basis,
        center=pca.mean_,
        feature_names=_feature_names(data),
        dim_names=[f"PC{i + 1}" for i in range(n_dims)],
        explained_ratio=pca.explained_variance_ratio_,
        kind="pca",
        provenance=f"pca({n_dims})",
    )


def lda_dimension_bound(n_features, n_classes):
    return min(n_features, n_classes - 1)


def build_lda(data, labels, n_dims=None, min_class_size=10):
    """
    Multi-class linear discriminant basis.

    Parameters
    ----------
    data : array-like or pandas.DataFrame
        Observations x features
    labels : array-like
        One class label per observation
    n_dims : int, optional
        Number of discriminants; min(n_features, n_classes - 1) by default
    min_class_size : int, optional
        Classes with fewer members are reported as degenerate

    Returns
    -------
    Subspace
        Unit-length (not necessarily orthogonal) discriminant vectors ordered
        by descending between/within variance ratio

    Raises
    ------
    DataIntegrityError
        If the data holds non-finite values or labels do not match the rows
    DimensionalityError
        If ``n_dims`` exceeds min(n_features, n_classes - 1)
    """
    check_finite(data)
    values = np.asarray(data, dtype=float)
    labels = np.asarray(labels)
    if labels.shape != (values.shape[0],):
        raise DataIntegrityError(
            f"Got {labels.shape[0] if labels.ndim else 0} labels for {values.shape[0]} rows"
        )
    if pd.isna(labels).any():
        raise DataIntegrityError("Class labels must not be missing")

    classes, counts = np.unique(labels.astype(str), return_counts=True)
    bound = lda_dimension_bound(values.shape[1], len(classes))
    if n_dims is None:
        n_dims = bound
    if not 1 <= n_dims <= bound:
        raise DimensionalityError(
            f"LDA with {len(classes)} classes and {values.shape[1]} features supports "
            f"1..{bound} dimensions, requested {n_dims}"
        )

    small = classes[counts < min_class_size]
    if len(small) > 0:
        logger.warning(
            f"LDA classes with fewer than {min_class_size} members (low confidence): "
            f"{list(small)}"
        )

    lda = LinearDiscriminantAnalysis(solver="eigen")
    lda.fit(values, labels.astype(str))
    scalings = lda.scalings_[:, :n_dims]
    basis = orient_signs(scalings / np.linalg.norm(scalings, axis=0))

    logger.info(f"LDA: {n_dims} of {bound} discriminants over {len(classes)} classes")
    return Subspace(
        basis,
        center=values.mean(axis=0),
        feature_names=_feature_names(data),
        dim_names=[f"LD{i + 1}" for i in range(n_dims)],
        explained_ratio=lda.explained_variance_ratio_[:n_dims],
        kind="lda",
        provenance=f"lda({len(classes)} classes, {n_dims})",
    )


def orthogonalize(subspace):
    """
    Orthonormalize a basis by QR, keeping its span and dimension order.

    The k-th new vector spans the same flag as the first k original vectors
    and points in the same direction as the k-th.
    """
    basis = subspace.project(which="basis").to_numpy()
    q, r = linalg.qr(basis, mode="economic")
    if np.any(np.abs(np.diag(r)) < 1e-12):
        raise DimensionalityError("Basis vectors are linearly dependent")
    q = q * np.sign(np.diag(r))
    return subspace.derive(
        q,
        dim_names=subspace.dim_names,
        explained_ratio=subspace.explained_ratio,
        step="orthogonalize",
    )
