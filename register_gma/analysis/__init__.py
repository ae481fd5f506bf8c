from .diagnostics import discriminant_accuracy, explained_variance
from .register_analysis import AnalysisResult, prepare_bundle, run_register_analysis
from .similarity import SubspaceSimilarity, similarity_table, subspace_similarity
