"""
Configuration records for the register GMA pipeline.

Classes
-------
DataConfig : Input tables and filtering thresholds
TransformConfig : Feature transformation settings
SubspaceConfig : PCA/LDA settings
OutputConfig : Checkpoint and figure output settings
AnalysisConfig : Complete pipeline configuration
"""

import math
from pathlib import Path
from typing import NamedTuple


class DataConfig(NamedTuple):
    """
    Input tables and filtering thresholds.

    Parameters
    ----------
    features_path : Path
        Feature table (CSV/TSV), one row per document.
    metadata_path : Path
        Metadata table keyed by the same identifier column.
    taxonomy_path : Path or None, optional
        Category taxonomy table. Without it, groupings use raw codes.
    id_column : str, optional
        Identifier column shared by both tables (default: "id").
    word_column : str, optional
        Word count column (default: "word").
    sentence_column : str, optional
        Sentence count column (default: "sentence").
    count_columns : tuple[str, ...], optional
        Size columns that are never used as features.
    min_words : int, optional
        Minimum word count for a text to be kept (default: 100).
    min_sentences : int, optional
        Minimum sentence count for a text to be kept (default: 1).
    group_column : str or None, optional
        Metadata column used to report exclusion rates.
    """

    features_path: Path
    metadata_path: Path
    taxonomy_path: Path | None = None
    id_column: str = "id"
    word_column: str = "word"
    sentence_column: str = "sentence"
    count_columns: tuple[str, ...] = ("token", "word", "sentence")
    min_words: int = 100
    min_sentences: int = 1
    group_column: str | None = "variety"


class TransformConfig(NamedTuple):
    """
    Feature transformation settings.

    Parameters
    ----------
    log_base : float, optional
        Base of the signed-log transform (default: e).
    near_zero_variance : float, optional
        Variance below which a feature is reported as degenerate.
    use_log : bool, optional
        Build subspaces on signed-log z-scores instead of plain z-scores.
    """

    log_base: float = math.e
    near_zero_variance: float = 1e-8
    use_log: bool = True


class SubspaceConfig(NamedTuple):
    """
    PCA and LDA settings.

    Parameters
    ----------
    n_pca_dims : int or None, optional
        Number of PCA dimensions kept; None keeps all.
    lda_levels : dict[str, str], optional
        Granularity level -> metadata column holding its category codes.
        LDA is computed once per level, in this order.
    n_lda_dims : int or None, optional
        Number of LDA dimensions; None uses the maximum.
    min_class_size : int, optional
        Classes smaller than this are reported as degenerate.
    match_method : str, optional
        "optimal" or "greedy" dimension matching.
    rotate_pair : tuple[int, int] or None, optional
        LDA dimension pair (0-based) to re-rotate by PCA.
    """

    n_pca_dims: int | None = None
    lda_levels: dict | None = None
    n_lda_dims: int | None = None
    min_class_size: int = 10
    match_method: str = "optimal"
    rotate_pair: tuple[int, int] | None = None


class OutputConfig(NamedTuple):
    """
    Output settings.

    Parameters
    ----------
    output_dir : Path
        Directory receiving the checkpoint, tables and figures.
    checkpoint_name : str, optional
        File name of the pickled analysis bundle.
    figure_format : str, optional
        Extension passed to matplotlib when saving figures.
    palette : str, optional
        seaborn palette used for category colors.
    render_figures : bool, optional
        Whether to render figures at all.
    seed : int, optional
        Seed of the display permutation.
    """

    output_dir: Path = Path("output")
    checkpoint_name: str = "register_gma.pkl"
    figure_format: str = "png"
    palette: str = "tab20"
    render_figures: bool = True
    seed: int = 42


class AnalysisConfig(NamedTuple):
    """Complete pipeline configuration."""

    data: DataConfig
    transform: TransformConfig = TransformConfig()
    subspace: SubspaceConfig = SubspaceConfig()
    output: OutputConfig = OutputConfig()
