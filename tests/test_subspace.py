"""Tests for the Subspace value type and the PCA/LDA builders."""

import numpy as np
import pandas as pd
import pytest

from register_gma.analysis.diagnostics import discriminant_accuracy
from register_gma.exceptions import DataIntegrityError, DimensionalityError
from register_gma.subspace import Projection, Subspace, build_lda, build_pca, orthogonalize


class TestSubspace:
    """Tests for the Subspace value type."""

    def test_project_views(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=2)

        scores = pca.project(correlated_data, which="scores")
        basis = pca.project(which="basis")
        both = pca.project(correlated_data, which="both")

        assert scores.shape == (200, 2)
        assert list(scores.columns) == ["PC1", "PC2"]
        assert basis.shape == (6, 2)
        assert list(basis.index) == list(correlated_data.columns)
        assert isinstance(both, Projection)
        pd.testing.assert_frame_equal(both.scores, scores)
        pd.testing.assert_frame_equal(both.basis, basis)

    def test_scores_are_centred_projection(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=3)
        scores = pca.project(correlated_data)
        expected = (correlated_data - correlated_data.mean()).to_numpy() @ pca.project(
            which="basis").to_numpy()
        assert np.allclose(scores.to_numpy(), expected)

    def test_columns_matched_by_name(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=2)
        shuffled = correlated_data[correlated_data.columns[::-1]]
        pd.testing.assert_frame_equal(pca.project(shuffled), pca.project(correlated_data))

    def test_invalid_view(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=2)
        with pytest.raises(ValueError):
            pca.project(correlated_data, which="weights")

    def test_wrong_feature_count(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=2)
        with pytest.raises(DimensionalityError):
            pca.project(np.zeros((4, 5)))

    def test_renamed_columns_rejected(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=2)
        renamed = correlated_data.rename(columns={"f1": "other"})
        with pytest.raises(DimensionalityError, match="f1"):
            pca.project(renamed)

    def test_non_string_columns_matched_by_name(self):
        frame = pd.DataFrame(np.random.default_rng(1).normal(size=(30, 3)))
        pca = build_pca(frame, n_dims=2)
        reordered = frame[[2, 0, 1]]
        pd.testing.assert_frame_equal(pca.project(reordered), pca.project(frame))

    def test_non_finite_basis(self):
        basis = np.eye(3)[:, :2]
        basis[1, 0] = np.nan
        with pytest.raises(DataIntegrityError):
            Subspace(basis)

    def test_basis_is_read_only(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=2)
        basis = pca.project(which="basis")
        basis.iloc[0, 0] = 99.0
        assert pca.project(which="basis").iloc[0, 0] != 99.0

    def test_select(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=4)
        sub = pca.select([2, 0])
        assert sub.dim_names == ["PC3", "PC1"]
        assert np.allclose(sub.explained_ratio, pca.explained_ratio[[2, 0]])
        with pytest.raises(DimensionalityError):
            pca.select([4])

    def test_derive_keeps_provenance(self, correlated_data):
        pca = build_pca(correlated_data, n_dims=2)
        derived = pca.derive(np.eye(6)[:, :2], step="identity")
        assert derived.provenance == "pca(2) -> identity"
        assert pca.provenance == "pca(2)"

    def test_default_names(self):
        space = Subspace(np.eye(3)[:, :2])
        assert space.feature_names == ["f1", "f2", "f3"]
        assert space.dim_names == ["dim1", "dim2"]


class TestBuildPCA:
    def test_orthonormal(self, correlated_data):
        pca = build_pca(correlated_data)
        assert pca.n_dims == 6
        assert pca.is_orthonormal()
        basis = pca.project(which="basis").to_numpy()
        assert np.allclose(basis.T @ basis, np.eye(6), atol=1e-10)

    def test_descending_variance(self, correlated_data):
        pca = build_pca(correlated_data)
        variances = pca.project(correlated_data).var(axis=0).to_numpy()
        assert np.all(np.diff(variances) <= 1e-10)
        assert np.all(np.diff(pca.explained_ratio) <= 0)

    def test_sign_convention(self, correlated_data):
        basis = build_pca(correlated_data).project(which="basis").to_numpy()
        idx = np.argmax(np.abs(basis), axis=0)
        assert np.all(basis[idx, np.arange(basis.shape[1])] > 0)

    def test_too_many_dims(self, correlated_data):
        with pytest.raises(DimensionalityError):
            build_pca(correlated_data, n_dims=7)

    def test_non_finite(self, correlated_data):
        data = correlated_data.copy()
        data.iloc[5, 2] = np.inf
        with pytest.raises(DataIntegrityError):
            build_pca(data)


class TestBuildLDA:
    def test_unit_length(self, lda_scenario):
        data, labels = lda_scenario
        lda = build_lda(data, labels)
        assert lda.has_unit_vectors()
        assert lda.kind == "lda"

    def test_dimension_bound(self, lda_scenario):
        data, labels = lda_scenario
        assert build_lda(data, labels).n_dims == 2
        with pytest.raises(DimensionalityError):
            build_lda(data, labels, n_dims=3)

    def test_dimension_bound_by_features(self, lda_scenario):
        data, labels = lda_scenario
        many = pd.Series(np.arange(100) % 5, index=labels.index)
        lda = build_lda(data[["inf1", "inf2"]], many)
        assert lda.n_dims == 2

    def test_informative_features_dominate(self, lda_scenario):
        data, labels = lda_scenario
        lda = build_lda(data, labels)
        weights = lda.project(which="basis")["LD1"].abs()
        top = set(weights.sort_values(ascending=False).index[:2])
        assert top == {"inf1", "inf2"}

    def test_one_dimension_separates_classes(self, lda_scenario):
        data, labels = lda_scenario
        lda = build_lda(data, labels)
        scores = lda.project(data)[["LD1"]]
        assert discriminant_accuracy(scores, labels) > 0.9
        assert discriminant_accuracy(scores, labels, cv=5) > 0.9

    def test_discriminant_ratio_descending(self, lda_scenario):
        data, labels = lda_scenario
        ratio = build_lda(data, labels).explained_ratio
        assert ratio[0] > ratio[1]
        assert ratio[0] > 0.9

    def test_label_count_mismatch(self, lda_scenario):
        data, labels = lda_scenario
        with pytest.raises(DataIntegrityError):
            build_lda(data, labels[:-1])

    def test_non_finite(self, lda_scenario):
        data, labels = lda_scenario
        data = data.copy()
        data.iloc[0, 0] = np.nan
        with pytest.raises(DataIntegrityError):
            build_lda(data, labels)

    def test_small_class_warning(self, lda_scenario, caplog):
        data, labels = lda_scenario
        labels = labels.copy()
        labels.iloc[:3] = "rare"
        build_lda(data, labels, min_class_size=10)
        assert "rare" in caplog.text


class TestOrthogonalize:
    def test_orthonormal_same_span(self, lda_scenario):
        data, labels = lda_scenario
        many = pd.Series(np.arange(100) % 5, index=labels.index)
        lda = build_lda(data, many)
        ortho = orthogonalize(lda)

        assert ortho.is_orthonormal()
        basis = lda.project(which="basis").to_numpy()
        q = ortho.project(which="basis").to_numpy()
        assert np.allclose(q @ q.T @ basis, basis)
        # first vector keeps its direction
        assert np.allclose(q[:, 0], basis[:, 0])
