"""
Persisted analysis state for downstream stages.
"""

import logging
from pathlib import Path
from typing import NamedTuple

import pandas as pd

from .corpus_data_loader import CorpusData

logger = logging.getLogger(__name__)


class AnalysisBundle(NamedTuple):
    """
    Filtered and transformed inputs shared by all analysis stages.

    Attributes:
        corpus (CorpusData): Filtered, aligned feature and metadata tables
        z_scores (DataFrame): Standardized feature matrix
        log_scores (DataFrame): Signed-log transform of ``z_scores``
        groupings (dict): Level name -> ordered category Series
        plot_styles (dict): Level name -> PlotStyle
    """

    corpus: CorpusData
    z_scores: pd.DataFrame
    log_scores: pd.DataFrame
    groupings: dict
    plot_styles: dict


def save_checkpoint(bundle, filepath):
    """
    Pickle an AnalysisBundle.

    Parameters
    ----------
    bundle : AnalysisBundle
        State to persist
    filepath : str or Path
        Target file; parent directories are created
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    pd.to_pickle(bundle._asdict(), filepath)
    logger.info(f"Saved checkpoint to {filepath}")


def load_checkpoint(filepath):
    """Reload an AnalysisBundle written by ``save_checkpoint``."""
    state = pd.read_pickle(filepath)
    state["corpus"] = CorpusData(*state["corpus"])
    logger.info(f"Loaded checkpoint from {filepath} ({len(state['corpus'])} documents)")
    return AnalysisBundle(**state)
