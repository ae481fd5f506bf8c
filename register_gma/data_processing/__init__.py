from .checkpoint import AnalysisBundle, load_checkpoint, save_checkpoint
from .corpus_data_loader import (
    CorpusData,
    CorpusDataLoader,
    check_finite,
    exclusion_rates,
    read_table,
)
from .preprocessing import constant_mask, drop_zero_variance, signed_log_transform, standardize
from .taxonomy import CategoryTaxonomy, category_grouping
