"""Pytest configuration and shared fixtures."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def three_doc_tables():
    """Feature and metadata tables of three documents, metadata shuffled."""
    features = pd.DataFrame(
        {
            "id": ["a", "b", "c"],
            "f1": [1.0, 2.0, 3.0],
            "f2": [0.5, 0.1, 0.9],
            "word": [150, 50, 300],
            "sentence": [10, 10, 10],
        }
    )
    metadata = pd.DataFrame(
        {
            "id": ["c", "a", "b"],
            "variety": ["GB", "IN", "GB"],
            "cat": ["x", "y", "x"],
        }
    )
    return features, metadata


@pytest.fixture
def lda_scenario():
    """
    100 x 10 matrix: 3 balanced classes, 2 informative and 8 noise features.
    """
    rng = np.random.default_rng(7)
    labels = np.repeat(["k0", "k1", "k2"], [34, 33, 33])
    shift = np.repeat([0.0, 1.0, 2.0], [34, 33, 33])

    values = rng.normal(size=(100, 10))
    values[:, 0] += 4.0 * shift
    values[:, 1] += 4.0 * shift

    columns = ["inf1", "inf2"] + [f"noise{i}" for i in range(1, 9)]
    index = [f"doc{i:03d}" for i in range(100)]
    return pd.DataFrame(values, index=index, columns=columns), pd.Series(labels, index=index)


@pytest.fixture
def correlated_data():
    """200 x 6 matrix with correlated columns."""
    rng = np.random.default_rng(11)
    latent = rng.normal(size=(200, 3))
    mixing = rng.normal(size=(3, 6))
    values = latent @ mixing + 0.3 * rng.normal(size=(200, 6))
    return pd.DataFrame(values, columns=[f"f{i}" for i in range(1, 7)])


def make_corpus_tables(n_docs=240, n_features=8, seed=3):
    """Synthetic corpus with 6 fine and 3 coarse categories."""
    rng = np.random.default_rng(seed)
    ids = [f"t{i:04d}" for i in range(n_docs)]
    fine = np.tile(np.arange(6), n_docs // 6)
    coarse = fine // 2

    counts = rng.poisson(6.0, size=(n_docs, n_features)).astype(float)
    counts[:, 0] += 5 * fine
    counts[:, 1] += 8 * coarse
    counts[:, 2] += 3 * (fine % 2)

    features = pd.DataFrame(counts, columns=[f"feat{j + 1}" for j in range(n_features)])
    features.insert(0, "id", ids)
    features["word"] = np.where(np.arange(n_docs) % 20 == 0, 40, 500)
    features["sentence"] = 20

    metadata = pd.DataFrame(
        {
            "id": ids,
            "variety": np.tile(["GB", "IN", "NZ", "PH"], n_docs // 4),
            "cat6": [f"c{c}" for c in fine],
            "cat3": [f"c{c}" for c in coarse],
        }
    )

    taxonomy = pd.DataFrame(
        {
            "level": ["3"] * 3 + ["6"] * 6,
            "code": ["c0", "c1", "c2"] + [f"c{i}" for i in range(6)],
            "name": ["Conversation", "Fiction", "News"]
            + [f"Category {i}" for i in range(6)],
            "label": ["conv", "fic", "news"] + [f"cat{i}" for i in range(6)],
            "order": [3, 1, 2] + list(range(6)),
        }
    )
    return features, metadata, taxonomy


@pytest.fixture
def corpus_tables():
    return make_corpus_tables()


@pytest.fixture
def corpus_files(tmp_path, corpus_tables):
    """Synthetic corpus written to TSV files."""
    features, metadata, taxonomy = corpus_tables
    paths = {
        "features": tmp_path / "features.tsv",
        "metadata": tmp_path / "metadata.tsv",
        "taxonomy": tmp_path / "categories.tsv",
    }
    features.to_csv(paths["features"], sep="\t", index=False)
    metadata.to_csv(paths["metadata"], sep="\t", index=False)
    taxonomy.to_csv(paths["taxonomy"], sep="\t", index=False)
    return paths
