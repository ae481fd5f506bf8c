"""
Rotation and alignment of subspace bases.

Two independent operations:

- ``rotate_pair`` re-rotates two dimensions of a basis within the plane they
  span so that the first captures the most variance of the data in that plane.
  Other dimensions keep their discriminant ordering.
- ``match_to_reference`` reorders and sign-flips dimensions so that they line
  up with the dimensions of a reference basis.
"""

import logging
from typing import NamedTuple

import numpy as np
from scipy import linalg
from scipy.optimize import linear_sum_assignment

from ..exceptions import DimensionalityError

logger = logging.getLogger(__name__)

MATCH_METHODS = ("optimal", "greedy")


def _basis(subspace):
    return subspace.project(which="basis").to_numpy()


def _check_same_features(a, b):
    if a.n_features != b.n_features:
        raise DimensionalityError(
            f"Feature dimensionality differs: {a.n_features} vs {b.n_features}"
        )


def rotate_pair(subspace, data, i, j):
    """
    PCA-rotate dimensions ``i`` and ``j`` of a subspace.

    Parameters
    ----------
    subspace : Subspace
        Basis to rotate
    data : array-like or pandas.DataFrame
        Observations in the subspace's feature space
    i, j : int
        Zero-based dimension indices, i != j

    Returns
    -------
    Subspace
        New subspace in which dimension ``i`` is the axis of maximal variance
        in the plane of the original pair and ``j`` is orthogonal to it. The
        pair is orthonormal; all other dimensions are unchanged.
    """
    n_dims = subspace.n_dims
    for d in (i, j):
        if not 0 <= d < n_dims:
            raise DimensionalityError(f"Dimension index {d} outside 0..{n_dims - 1}")
    if i == j:
        raise ValueError("rotate_pair needs two different dimensions")

    values = subspace.center_data(data)
    basis = _basis(subspace)

    pair = basis[:, [i, j]]
    q, r = linalg.qr(pair, mode="economic")
    if abs(r[1, 1]) < 1e-12:
        raise DimensionalityError(f"Dimensions {i} and {j} are collinear")
    q = q * np.sign(np.diag(r))

    plane_scores = values @ q
    cov = np.cov(plane_scores, rowvar=False)
    eigvals, eigvecs = linalg.eigh(cov)
    order = np.argsort(eigvals)[::-1]
    rot = eigvecs[:, order]
    # keep each new axis on the same side as the original axis it replaces
    rot = rot * np.where(np.diag(rot) < 0, -1.0, 1.0)

    rotated = basis.copy()
    rotated[:, [i, j]] = q @ rot

    share = eigvals[order][0] / eigvals.sum() if eigvals.sum() > 0 else np.nan
    logger.info(
        f"Rotated {subspace.dim_names[i]}/{subspace.dim_names[j]}: "
        f"first axis carries {share:.1%} of the in-plane variance"
    )

    names = list(subspace.dim_names)
    names[i], names[j] = f"{names[i]}'", f"{names[j]}'"
    return subspace.derive(
        rotated,
        dim_names=names,
        explained_ratio=None,
        kind=subspace.kind,
        step=f"rotate_pair({i},{j})",
    )


def cosine_matrix(a, b):
    """
    Cosine similarity between every dimension of ``a`` and every one of ``b``.

    Returns
    -------
    ndarray
        a.n_dims x b.n_dims matrix
    """
    _check_same_features(a, b)
    ba = _basis(a)
    bb = _basis(b)
    ba = ba / np.linalg.norm(ba, axis=0)
    bb = bb / np.linalg.norm(bb, axis=0)
    return ba.T @ bb


class DimensionMatch(NamedTuple):
    """
    Result of matching dimensions of a subspace to a reference.

    Attributes:
        order (ndarray): Source dimension index placed at each output position
        signs (ndarray): +1/-1 applied to each output dimension
        cosines (ndarray): Signed cosine with the reference dimension after
            flipping (non-negative); NaN for unmatched trailing dimensions
    """

    order: np.ndarray
    signs: np.ndarray
    cosines: np.ndarray


def _greedy_assignment(score):
    score = score.copy()
    rows, cols = [], []
    for _ in range(min(score.shape)):
        r, c = np.unravel_index(np.argmax(score), score.shape)
        rows.append(r)
        cols.append(c)
        score[r, :] = -np.inf
        score[:, c] = -np.inf
    return np.array(rows), np.array(cols)


def match_dimensions(subspace, reference, method="optimal"):
    """
    Pair the dimensions of ``subspace`` one-to-one with those of ``reference``.

    Parameters
    ----------
    subspace, reference : Subspace
        Bases over the same feature space; ``subspace`` needs at least as
        many dimensions as ``reference``
    method : {"optimal", "greedy"}
        "optimal" solves the assignment problem on the absolute cosine matrix
        (maximum total similarity); "greedy" repeatedly takes the most similar
        remaining pair. They can differ on near-ties.

    Returns
    -------
    DimensionMatch
    """
    if method not in MATCH_METHODS:
        raise ValueError(f"method must be one of {MATCH_METHODS}, got {method!r}")
    if subspace.n_dims < reference.n_dims:
        raise DimensionalityError(
            f"Cannot match {subspace.n_dims} dimensions to {reference.n_dims} reference dimensions"
        )

    cos = cosine_matrix(subspace, reference)
    score = np.abs(cos)
    if method == "optimal":
        rows, cols = linear_sum_assignment(score, maximize=True)
    else:
        rows, cols = _greedy_assignment(score)

    # position k of the output holds the source dimension matched to reference dim k
    by_ref = np.argsort(cols)
    matched = rows[by_ref]
    signs = np.where(cos[matched, cols[by_ref]] < 0, -1.0, 1.0)
    cosines = np.abs(cos[matched, cols[by_ref]])

    taken = set(matched.tolist())
    rest = np.array([d for d in range(subspace.n_dims) if d not in taken], dtype=int)
    order = np.concatenate([matched, rest]).astype(int)
    signs = np.concatenate([signs, np.ones(len(rest))])
    cosines = np.concatenate([cosines, np.full(len(rest), np.nan)])
    return DimensionMatch(order=order, signs=signs, cosines=cosines)


def match_to_reference(subspace, reference, method="optimal"):
    """
    Reorder and sign-flip dimensions to line up with a reference basis.

    Parameters
    ----------
    subspace : Subspace
        Basis to align
    reference : Subspace
        Basis providing the target axis order and orientation
    method : {"optimal", "greedy"}
        Matching strategy, see ``match_dimensions``

    Returns
    -------
    Subspace
        New subspace spanning the same space as ``subspace``
    """
    _check_same_features(subspace, reference)
    match = match_dimensions(subspace, reference, method=method)
    basis = _basis(subspace)[:, match.order] * match.signs

    names = [subspace.dim_names[d] for d in match.order]
    names = [f"-{n}" if s < 0 else n for n, s in zip(names, match.signs)]
    ratio = subspace.explained_ratio
    if ratio is not None:
        ratio = ratio[match.order]

    for k in range(reference.n_dims):
        logger.info(
            f"  {reference.dim_names[k]} <- {names[k]} (|cos| = {match.cosines[k]:.3f})"
        )
    return subspace.derive(
        basis,
        dim_names=names,
        explained_ratio=ratio,
        step=f"match({reference.provenance}, {method})",
    )
