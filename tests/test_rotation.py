"""Tests for pair rotation and match-to-reference alignment."""

import numpy as np
import pandas as pd
import pytest

from register_gma.exceptions import DimensionalityError
from register_gma.subspace import (
    Subspace,
    build_lda,
    build_pca,
    cosine_matrix,
    match_dimensions,
    match_to_reference,
    rotate_pair,
)


@pytest.fixture
def five_class_lda(lda_scenario):
    data, labels = lda_scenario
    many = pd.Series(np.arange(100) % 5, index=labels.index)
    many[labels == "k2"] = 4
    return data, build_lda(data, many)


class TestRotatePair:
    def test_other_dims_untouched(self, five_class_lda):
        data, lda = five_class_lda
        rotated = rotate_pair(lda, data, 0, 2)

        before = lda.project(which="basis").to_numpy()
        after = rotated.project(which="basis").to_numpy()
        assert np.allclose(after[:, [1, 3]], before[:, [1, 3]])

    def test_pair_orthonormal_same_plane(self, five_class_lda):
        data, lda = five_class_lda
        rotated = rotate_pair(lda, data, 0, 1)

        before = lda.project(which="basis").to_numpy()[:, [0, 1]]
        pair = rotated.project(which="basis").to_numpy()[:, [0, 1]]
        assert np.allclose(pair.T @ pair, np.eye(2), atol=1e-10)
        # rotated vectors lie in the plane of the original pair
        q, _ = np.linalg.qr(before)
        assert np.allclose(q @ q.T @ pair, pair)

    def test_first_axis_has_max_variance(self, five_class_lda):
        data, lda = five_class_lda
        rotated = rotate_pair(lda, data, 0, 1)
        scores = rotated.project(data)

        assert abs(np.corrcoef(scores.iloc[:, 0], scores.iloc[:, 1])[0, 1]) < 1e-8
        assert scores.iloc[:, 0].var() >= scores.iloc[:, 1].var()

        # no direction in the plane carries more variance
        pair = rotated.project(which="basis").to_numpy()[:, [0, 1]]
        centred = data.to_numpy() - data.to_numpy().mean(axis=0)
        for angle in np.linspace(0, np.pi, 19):
            direction = pair @ np.array([np.cos(angle), np.sin(angle)])
            assert np.var(centred @ direction, ddof=1) <= scores.iloc[:, 0].var() + 1e-9

    def test_input_not_modified(self, five_class_lda):
        data, lda = five_class_lda
        before = lda.project(which="basis").copy()
        rotated = rotate_pair(lda, data, 0, 1)

        pd.testing.assert_frame_equal(lda.project(which="basis"), before)
        assert rotated is not lda
        assert rotated.dim_names[:2] == ["LD1'", "LD2'"]
        assert "rotate_pair(0,1)" in rotated.provenance

    def test_invalid_indices(self, five_class_lda):
        data, lda = five_class_lda
        with pytest.raises(DimensionalityError):
            rotate_pair(lda, data, 0, 4)
        with pytest.raises(ValueError):
            rotate_pair(lda, data, 1, 1)

    def test_feature_mismatch(self, five_class_lda):
        data, lda = five_class_lda
        with pytest.raises(DimensionalityError):
            rotate_pair(lda, data.to_numpy()[:, :5], 0, 1)


class TestMatchToReference:
    def _scrambled(self, reference, order, signs):
        basis = reference.project(which="basis").to_numpy()[:, order] * np.asarray(signs)
        return reference.derive(basis, dim_names=[f"X{i}" for i in range(len(order))],
                                step="scramble")

    @pytest.mark.parametrize("method", ["optimal", "greedy"])
    def test_recovers_permutation_and_signs(self, correlated_data, method):
        reference = build_pca(correlated_data, n_dims=3)
        scrambled = self._scrambled(reference, [2, 0, 1], [1.0, -1.0, 1.0])

        aligned = match_to_reference(scrambled, reference, method=method)

        assert np.allclose(aligned.project(which="basis").to_numpy(),
                           reference.project(which="basis").to_numpy())
        assert aligned.dim_names == ["-X1", "X2", "X0"]

    def test_match_details(self, correlated_data):
        reference = build_pca(correlated_data, n_dims=3)
        scrambled = self._scrambled(reference, [1, 2, 0], [-1.0, 1.0, -1.0])

        match = match_dimensions(scrambled, reference)
        assert match.order.tolist() == [2, 0, 1]
        assert match.signs.tolist() == [-1.0, -1.0, 1.0]
        assert np.allclose(match.cosines, 1.0)

    def test_extra_dimensions_follow(self, correlated_data):
        reference = build_pca(correlated_data, n_dims=2)
        full = build_pca(correlated_data, n_dims=4)
        scrambled = self._scrambled(full, [3, 1, 2, 0], [1.0, 1.0, 1.0, 1.0])

        match = match_dimensions(scrambled, reference)
        assert match.order.tolist() == [3, 1, 0, 2]
        assert np.isnan(match.cosines[2:]).all()

    def test_optimal_and_greedy_disagree(self):
        second = np.array([0.75, 0.0, 0.66])
        basis = np.column_stack([[0.8, 0.6, 0.0], second / np.linalg.norm(second)])
        space = Subspace(basis)
        reference = Subspace(np.eye(3)[:, :2])

        optimal = match_dimensions(space, reference, method="optimal")
        greedy = match_dimensions(space, reference, method="greedy")

        assert optimal.order.tolist() == [1, 0]
        assert optimal.cosines == pytest.approx([0.7507, 0.6], abs=1e-3)
        assert greedy.order.tolist() == [0, 1]
        assert greedy.cosines == pytest.approx([0.8, 0.0], abs=1e-3)
        assert optimal.cosines.sum() > greedy.cosines.sum()

    def test_original_untouched(self, correlated_data):
        reference = build_pca(correlated_data, n_dims=3)
        scrambled = self._scrambled(reference, [2, 0, 1], [1.0, -1.0, 1.0])
        before = scrambled.project(which="basis").copy()

        match_to_reference(scrambled, reference)
        pd.testing.assert_frame_equal(scrambled.project(which="basis"), before)

    def test_lda_granularities(self, five_class_lda, lda_scenario):
        data, fine = five_class_lda
        _, labels = lda_scenario
        coarse = build_lda(data, labels)

        aligned = match_to_reference(fine, coarse)
        cos = cosine_matrix(aligned, coarse)
        assert np.all(np.diag(cos) > 0)
        assert aligned.n_dims == fine.n_dims

    def test_feature_mismatch(self, correlated_data):
        reference = build_pca(correlated_data, n_dims=2)
        other = Subspace(np.eye(5)[:, :2])
        with pytest.raises(DimensionalityError):
            match_to_reference(other, reference)

    def test_too_few_dimensions(self, correlated_data):
        reference = build_pca(correlated_data, n_dims=3)
        with pytest.raises(DimensionalityError):
            match_to_reference(reference.select([0, 1]), reference)

    def test_unknown_method(self, correlated_data):
        reference = build_pca(correlated_data, n_dims=2)
        with pytest.raises(ValueError):
            match_to_reference(reference, reference, method="hungarian")
