from .builder import build_lda, build_pca, lda_dimension_bound, orthogonalize
from .rotation import (
    DimensionMatch,
    cosine_matrix,
    match_dimensions,
    match_to_reference,
    rotate_pair,
)
from .subspace import Projection, Subspace
