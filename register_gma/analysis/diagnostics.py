"""
Diagnostics for subspaces: explained variance and discriminant accuracy.
"""

import numpy as np
import pandas as pd
from scipy import linalg
from sklearn.discriminant_analysis import LinearDiscriminantAnalysis
from sklearn.model_selection import StratifiedKFold, cross_val_score


def explained_variance(subspace, data):
    """
    Share of the total variance of ``data`` captured by a subspace.

    The basis is orthonormalized first, so dimensions are credited in order:
    each one receives the variance it adds on top of the preceding ones.

    Parameters
    ----------
    subspace : Subspace
        Basis over the feature space of ``data``
    data : array-like or pandas.DataFrame
        Observations

    Returns
    -------
    pandas.DataFrame
        Indexed by dimension name with columns ``r2`` and ``cumulative``
    """
    values = subspace.center_data(data)
    basis = subspace.project(which="basis").to_numpy()
    q, r = linalg.qr(basis, mode="economic")
    q = q * np.where(np.diag(r) < 0, -1.0, 1.0)

    total = np.sum(values ** 2)
    per_dim = np.sum((values @ q) ** 2, axis=0) / total
    return pd.DataFrame(
        {"r2": per_dim, "cumulative": np.cumsum(per_dim)},
        index=subspace.dim_names,
    )


def discriminant_accuracy(scores, labels, cv=None, random_state=42):
    """
    Accuracy of an LDA classifier on projected scores.

    Parameters
    ----------
    scores : array-like or pandas.DataFrame
        Observations in latent space
    labels : array-like
        Class per observation
    cv : int, optional
        Number of stratified folds; training accuracy when None
    random_state : int, optional
        Seed of the fold shuffle

    Returns
    -------
    float
        Mean accuracy
    """
    values = np.asarray(scores, dtype=float)
    if values.ndim == 1:
        values = values[:, np.newaxis]
    labels = np.asarray(labels).astype(str)

    classifier = LinearDiscriminantAnalysis()
    if cv is None:
        return float(classifier.fit(values, labels).score(values, labels))

    folds = StratifiedKFold(n_splits=cv, shuffle=True, random_state=random_state)
    return float(np.mean(cross_val_score(classifier, values, labels, cv=folds)))
