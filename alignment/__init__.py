"""
Alignment engine for agent-based microsimulation.

Adjusts per-agent probabilities or stochastic outcomes so that aggregates
of a (filtered) population match externally imposed targets, such as
census totals or projected transition rates.

Agents are opaque: methods read and write their state through closures
(see ``closures``) and read weights through the ``Weighted`` capability.
"""

from .closures import MultiProbabilityClosure, OutcomeClosure, ProbabilityClosure
from .config import (
    AVG_RESAMPLE_ATTEMPTS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_PRECISION,
    AlignmentConfig,
)
from .errors import AlignmentConvergenceWarning, AlignmentValidationError
from .frame import AlignmentSummary, align_frame, summarise_alignment
from .methods import (
    LogitScalingAligner,
    LogitScalingBinaryAligner,
    LogitScalingBinaryWeightedAligner,
    LogitScalingWeightedAligner,
    MultiplicativeScalingAligner,
    ResamplingAligner,
    SBDAligner,
    SBDLAligner,
    SidewalkAligner,
)
from .population import Weighted, filter_population
from .synthetic import generate_population

__all__ = [
    # Closures
    "ProbabilityClosure",
    "MultiProbabilityClosure",
    "OutcomeClosure",
    # Configuration
    "AlignmentConfig",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_PRECISION",
    "AVG_RESAMPLE_ATTEMPTS",
    # Errors
    "AlignmentValidationError",
    "AlignmentConvergenceWarning",
    # Population
    "Weighted",
    "filter_population",
    # Methods
    "LogitScalingAligner",
    "LogitScalingWeightedAligner",
    "LogitScalingBinaryAligner",
    "LogitScalingBinaryWeightedAligner",
    "MultiplicativeScalingAligner",
    "SBDAligner",
    "SBDLAligner",
    "SidewalkAligner",
    "ResamplingAligner",
    # DataFrames
    "align_frame",
    "summarise_alignment",
    "AlignmentSummary",
    # Synthetic data
    "generate_population",
]
