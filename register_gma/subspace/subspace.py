"""
Subspace value type
===================

A Subspace is an immutable set of basis vectors in feature space together
with the centring vector used when projecting data onto it. Rotation and
alignment never modify a Subspace; they return a new one whose ``provenance``
records how it was derived.
"""

from typing import NamedTuple

import numpy as np
import pandas as pd

from ..exceptions import DataIntegrityError, DimensionalityError

PROJECTION_VIEWS = ("scores", "basis", "both")


class Projection(NamedTuple):
    """Scores of the projected observations and the basis that produced them."""

    scores: pd.DataFrame
    basis: pd.DataFrame


def _readonly(array):
    array = np.array(array, dtype=float, copy=True)
    array.setflags(write=False)
    return array


def orient_signs(basis):
    """
    Flip basis vectors so that each one's largest-magnitude weight is positive.
    """
    basis = np.array(basis, dtype=float, copy=True)
    idx = np.argmax(np.abs(basis), axis=0)
    signs = np.sign(basis[idx, np.arange(basis.shape[1])])
    signs[signs == 0] = 1.0
    return basis * signs


class Subspace:
    """
    Orthonormal (PCA) or unit-length (LDA) basis in feature space.

    Attributes:
        kind (str): How the basis was obtained, e.g. 'pca', 'lda'
        feature_names (list): Names of the feature-space coordinates
        dim_names (list): Names of the latent dimensions
        explained_ratio (ndarray or None): Per-dimension share of variance
            (PCA) or of the discriminant criterion (LDA)
        provenance (str): Human-readable derivation history
    """

    def __init__(self, basis, center=None, feature_names=None, dim_names=None,
                 explained_ratio=None, kind="basis", provenance=None):
        basis = np.asarray(basis, dtype=float)
        if basis.ndim != 2:
            raise DimensionalityError(f"Basis must be a 2-D matrix, got shape {basis.shape}")
        if not np.isfinite(basis).all():
            raise DataIntegrityError("Basis contains non-finite values")

        n_features, n_dims = basis.shape
        self._basis = _readonly(basis)
        self._center = None
        if center is not None:
            center = np.asarray(center, dtype=float)
            if center.shape != (n_features,):
                raise DimensionalityError(
                    f"Centring vector has shape {center.shape}, expected ({n_features},)"
                )
            self._center = _readonly(center)

        self.feature_names = list(feature_names) if feature_names is not None else [
            f"f{i + 1}" for i in range(n_features)
        ]
        if len(self.feature_names) != n_features:
            raise DimensionalityError("Number of feature names does not match the basis")

        self.dim_names = list(dim_names) if dim_names is not None else [
            f"dim{i + 1}" for i in range(n_dims)
        ]
        if len(self.dim_names) != n_dims:
            raise DimensionalityError("Number of dimension names does not match the basis")

        self.explained_ratio = _readonly(explained_ratio) if explained_ratio is not None else None
        self.kind = kind
        self.provenance = provenance or kind

    @property
    def n_features(self):
        return self._basis.shape[0]

    @property
    def n_dims(self):
        return self._basis.shape[1]

    def __repr__(self):
        return (f"Subspace(kind={self.kind!r}, n_features={self.n_features}, "
                f"n_dims={self.n_dims}, provenance={self.provenance!r})")

    def derive(self, basis, dim_names=None, explained_ratio=None, kind=None, step=None):
        """
        Build a new Subspace over the same feature space and centring vector.

        Parameters:
            basis (ndarray): New basis, n_features x k
            dim_names (list): Names of the new dimensions
            explained_ratio (ndarray): Optional per-dimension ratios
            kind (str): Kind of the new subspace; defaults to this one's
            step (str): Derivation step appended to the provenance
        """
        basis = np.asarray(basis, dtype=float)
        if basis.ndim != 2 or basis.shape[0] != self.n_features:
            raise DimensionalityError(
                f"Derived basis must have {self.n_features} rows, got shape {basis.shape}"
            )
        provenance = f"{self.provenance} -> {step}" if step else self.provenance
        return Subspace(
            basis,
            center=self._center,
            feature_names=self.feature_names,
            dim_names=dim_names,
            explained_ratio=explained_ratio,
            kind=kind or self.kind,
            provenance=provenance,
        )

    def select(self, dims):
        """Subspace spanned by the given dimension indices, in that order."""
        dims = list(dims)
        for d in dims:
            if not 0 <= d < self.n_dims:
                raise DimensionalityError(f"Dimension index {d} outside 0..{self.n_dims - 1}")
        ratio = self.explained_ratio[dims] if self.explained_ratio is not None else None
        return self.derive(
            self._basis[:, dims],
            dim_names=[self.dim_names[d] for d in dims],
            explained_ratio=ratio,
            step=f"select{dims}",
        )

    def _coerce_data(self, data):
        if isinstance(data, pd.DataFrame):
            columns = [str(c) for c in data.columns]
            missing = [f for f in self.feature_names if f not in columns]
            if missing:
                raise DimensionalityError(
                    f"Data lacks {len(missing)} features of this subspace: {missing[:5]}"
                )
            positions = [columns.index(f) for f in self.feature_names]
            return data.iloc[:, positions].to_numpy(dtype=float), data.index

        values = np.asarray(data, dtype=float)
        if values.ndim == 1:
            values = values[np.newaxis, :]
        if values.shape[1] != self.n_features:
            raise DimensionalityError(
                f"Data has {values.shape[1]} features, subspace has {self.n_features}"
            )
        return values, pd.RangeIndex(values.shape[0])

    def basis_frame(self):
        return pd.DataFrame(self._basis.copy(), index=self.feature_names, columns=self.dim_names)

    def project(self, data=None, which="scores"):
        """
        Project data onto the subspace.

        Parameters
        ----------
        data : array-like or pandas.DataFrame, optional
            Observations in feature space; not needed for ``which="basis"``
        which : {"scores", "basis", "both"}
            What to return

        Returns
        -------
        pandas.DataFrame or Projection
            Low-dimensional coordinates, basis vectors (features x dims), or
            both as a Projection
        """
        if which not in PROJECTION_VIEWS:
            raise ValueError(f"which must be one of {PROJECTION_VIEWS}, got {which!r}")
        if which == "basis":
            return self.basis_frame()
        if data is None:
            raise ValueError(f"Data is required for which={which!r}")

        values, index = self._coerce_data(data)
        if self._center is not None:
            values = values - self._center
        scores = pd.DataFrame(values @ self._basis, index=index, columns=self.dim_names)

        if which == "scores":
            return scores
        return Projection(scores=scores, basis=self.basis_frame())

    def center_data(self, data):
        """Data with this subspace's centring vector subtracted, as an array."""
        values, _ = self._coerce_data(data)
        if self._center is not None:
            values = values - self._center
        return values

    def gram(self):
        """Basis cross-product matrix B'B."""
        return self._basis.T @ self._basis

    def is_orthonormal(self, atol=1e-8):
        return np.allclose(self.gram(), np.eye(self.n_dims), atol=atol)

    def has_unit_vectors(self, atol=1e-8):
        return np.allclose(np.linalg.norm(self._basis, axis=0), 1.0, atol=atol)
