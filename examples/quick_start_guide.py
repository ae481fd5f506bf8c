"""
Quick start guide for using the register GMA package on synthetic data.
"""

import os
import sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pandas as pd

from register_gma.analysis import discriminant_accuracy, subspace_similarity
from register_gma.data_processing import (
    CorpusDataLoader,
    category_grouping,
    signed_log_transform,
    standardize,
)
from register_gma.subspace import build_lda, build_pca, match_to_reference, rotate_pair
from register_gma.visualization import RegisterVisualizer, make_plot_style


def synthetic_corpus(n_docs=300, n_features=12, seed=0):
    rng = np.random.default_rng(seed)
    ids = [f"doc{i:04d}" for i in range(n_docs)]
    fine = rng.integers(0, 6, n_docs)
    coarse = fine // 2

    counts = rng.poisson(5.0, size=(n_docs, n_features)).astype(float)
    counts[:, 0] += 4 * fine
    counts[:, 1] += 6 * coarse
    features = pd.DataFrame(counts, columns=[f"feat{j + 1}" for j in range(n_features)])
    features.insert(0, "id", ids)
    features["word"] = rng.integers(50, 2000, n_docs)
    features["sentence"] = rng.integers(1, 100, n_docs)

    metadata = pd.DataFrame({
        "id": ids,
        "variety": rng.choice(["GB", "IN", "NZ"], n_docs),
        "cat6": [f"c{c}" for c in fine],
        "cat3": [f"c{c}" for c in coarse],
    })
    return features, metadata


def main():
    features, metadata = synthetic_corpus()

    loader = CorpusDataLoader()
    corpus = loader.align(features, metadata)
    corpus = loader.filter_min_size(corpus, min_words=100, group_column="variety")

    z = signed_log_transform(standardize(loader.feature_matrix(corpus)))
    fine = category_grouping(corpus.metadata, "cat6")
    coarse = category_grouping(corpus.metadata, "cat3")

    pca = build_pca(z, n_dims=4)
    lda_fine = rotate_pair(build_lda(z, fine), z, 0, 1)
    lda_coarse = build_lda(z, coarse)
    lda_fine_aligned = match_to_reference(lda_fine.select([0, 1]), lda_coarse)

    print(f"LDA(6) vs LDA(3): {subspace_similarity(lda_fine, lda_coarse).shared_dims:.2f} shared dims")
    print(f"LDA(6) vs PCA(4): {subspace_similarity(lda_fine, pca).r2:.2f} expected R2")
    print(f"LDA(3) accuracy: {discriminant_accuracy(lda_coarse.project(z), coarse, cv=5):.1%}")

    visualizer = RegisterVisualizer()
    visualizer.plot_scatter_matrix(lda_fine_aligned.project(z), fine, style=make_plot_style(fine))
    visualizer.save_plot("lda_fine_scatter.png")
    visualizer.plot_weights(lda_coarse, dims=[0, 1], top_n=10)
    visualizer.save_plot("lda_coarse_weights.png")


if __name__ == "__main__":
    main()
