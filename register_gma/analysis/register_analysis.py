"""
Register GMA Pipeline
=====================

The fixed analysis narrative: load and filter the corpus, transform features,
build PCA and per-granularity LDA subspaces, align them, compare them and
write the checkpoint, tables and figures.
"""

import logging
from pathlib import Path
from typing import NamedTuple

import pandas as pd

from ..data_processing.checkpoint import AnalysisBundle, save_checkpoint
from ..data_processing.corpus_data_loader import CorpusDataLoader
from ..data_processing.preprocessing import (
    drop_zero_variance,
    signed_log_transform,
    standardize,
)
from ..data_processing.taxonomy import CategoryTaxonomy, category_grouping
from ..subspace.builder import build_lda, build_pca
from ..subspace.rotation import match_to_reference, rotate_pair
from ..visualization.register_plots import RegisterVisualizer, make_plot_style
from .diagnostics import discriminant_accuracy, explained_variance
from .similarity import similarity_table

logger = logging.getLogger(__name__)


class AnalysisResult(NamedTuple):
    """
    Everything produced by one pipeline run.

    Attributes:
        bundle (AnalysisBundle): Filtered/transformed inputs
        pca (Subspace): PCA subspace of the analysis matrix
        lda (dict): Level -> LDA subspace as computed
        aligned (dict): Level -> LDA subspace matched to the first level
        similarity (DataFrame): Pairwise subspace similarity
        accuracy (DataFrame): Discriminant accuracy per level
    """

    bundle: AnalysisBundle
    pca: object
    lda: dict
    aligned: dict
    similarity: pd.DataFrame
    accuracy: pd.DataFrame


def prepare_bundle(config):
    """
    Load, align, filter and transform the corpus.

    Parameters:
        config (AnalysisConfig): Pipeline configuration

    Returns:
        AnalysisBundle: Inputs shared by all later stages
    """
    data_cfg = config.data
    loader = CorpusDataLoader.from_config(data_cfg)

    corpus = loader.load(data_cfg.features_path, data_cfg.metadata_path)
    group_column = data_cfg.group_column
    if group_column is not None and group_column not in corpus.metadata.columns:
        logger.warning(f"Grouping column '{group_column}' not in metadata; rates not reported")
        group_column = None
    corpus = loader.filter_min_size(
        corpus,
        min_words=data_cfg.min_words,
        min_sentences=data_cfg.min_sentences,
        group_column=group_column,
    )

    features = drop_zero_variance(loader.feature_matrix(corpus))
    z_scores = standardize(features, near_zero_variance=config.transform.near_zero_variance)
    log_scores = signed_log_transform(z_scores, base=config.transform.log_base)

    taxonomy = None
    if data_cfg.taxonomy_path is not None:
        taxonomy = CategoryTaxonomy.load(data_cfg.taxonomy_path)

    groupings = {}
    plot_styles = {}
    for level, column in (config.subspace.lda_levels or {}).items():
        grouping = category_grouping(
            corpus.metadata, column,
            taxonomy=taxonomy,
            level=level if taxonomy is not None else None,
        )
        groupings[level] = grouping
        plot_styles[level] = make_plot_style(grouping, palette=config.output.palette)

    return AnalysisBundle(
        corpus=corpus,
        z_scores=z_scores,
        log_scores=log_scores,
        groupings=groupings,
        plot_styles=plot_styles,
    )


def analysis_matrix(bundle, config):
    return bundle.log_scores if config.transform.use_log else bundle.z_scores


def run_register_analysis(config):
    """
    Run the complete analysis.

    Parameters:
        config (AnalysisConfig): Pipeline configuration

    Returns:
        AnalysisResult: Subspaces, comparison tables and the input bundle
    """
    sub_cfg = config.subspace
    out_dir = Path(config.output.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    bundle = prepare_bundle(config)
    save_checkpoint(bundle, out_dir / config.output.checkpoint_name)
    matrix = analysis_matrix(bundle, config)

    pca = build_pca(matrix, n_dims=sub_cfg.n_pca_dims)
    explained_variance(pca, matrix).to_csv(out_dir / "pca_explained_variance.csv")

    lda = {}
    for level, grouping in bundle.groupings.items():
        logger.info(f"Building LDA for level {level} ({grouping.nunique()} classes)")
        lda[level] = build_lda(matrix, grouping, n_dims=sub_cfg.n_lda_dims,
                               min_class_size=sub_cfg.min_class_size)
        if sub_cfg.rotate_pair is not None:
            i, j = sub_cfg.rotate_pair
            lda[level] = rotate_pair(lda[level], matrix, i, j)

    aligned = {}
    reference = None
    for level, space in lda.items():
        if reference is None:
            reference = space
            aligned[level] = space
            continue
        if space.n_dims >= reference.n_dims:
            aligned[level] = match_to_reference(space, reference, method=sub_cfg.match_method)
        else:
            logger.warning(
                f"LDA {level} has {space.n_dims} dimensions, fewer than the {reference.n_dims} "
                f"of the reference level; left unaligned"
            )
            aligned[level] = space

    named = {"PCA": pca}
    named.update({f"LDA {level}": space for level, space in lda.items()})
    similarity = similarity_table(named)
    similarity.to_csv(out_dir / "subspace_similarity.csv", index=False)
    logger.info("Subspace similarity:\n" + similarity.to_string(index=False))

    rows = []
    for level, space in lda.items():
        scores = space.project(matrix)
        labels = bundle.groupings[level]
        rows.append({
            "level": level,
            "n_dims": space.n_dims,
            "accuracy": discriminant_accuracy(scores, labels, cv=None),
        })
    accuracy = pd.DataFrame(rows, columns=["level", "n_dims", "accuracy"])
    accuracy.to_csv(out_dir / "lda_accuracy.csv", index=False)

    if config.output.render_figures:
        render_figures(bundle, matrix, pca, aligned, config)

    return AnalysisResult(
        bundle=bundle,
        pca=pca,
        lda=lda,
        aligned=aligned,
        similarity=similarity,
        accuracy=accuracy,
    )


def render_figures(bundle, matrix, pca, aligned, config, max_dims=4):
    """Scatterplot matrices, weight charts and box plots for every subspace."""
    out_dir = Path(config.output.output_dir)
    fmt = config.output.figure_format
    visualizer = RegisterVisualizer(seed=config.output.seed)

    spaces = {"pca": pca}
    spaces.update({f"lda_{level}": space for level, space in aligned.items()})

    for level, grouping in bundle.groupings.items():
        style = bundle.plot_styles[level]
        for name, space in spaces.items():
            scores = space.project(matrix)
            dims = list(scores.columns[:max_dims])
            if len(dims) >= 2:
                visualizer.plot_scatter_matrix(scores, grouping, style=style, dims=dims,
                                               title=f"{space.provenance} by {level}")
                visualizer.save_plot(out_dir / f"scatter_{name}_by_{level}.{fmt}")

            visualizer.plot_grouped_boxplot(scores, grouping, dims[0], style=style)
            visualizer.save_plot(out_dir / f"box_{name}_by_{level}.{fmt}")

    for name, space in spaces.items():
        visualizer.plot_weights(space, dims=range(min(space.n_dims, 2)), top_n=20)
        visualizer.save_plot(out_dir / f"weights_{name}.{fmt}")

    logger.info(f"Figures written to {out_dir}")
