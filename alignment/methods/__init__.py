"""
Alignment methods.

Each method aligns a filtered sub-population to a target:
- LogitScalingAligner / LogitScalingWeightedAligner: multi-choice
  iterative proportional fitting
- LogitScalingBinaryAligner / LogitScalingBinaryWeightedAligner: the
  binary case of Logit Scaling
- MultiplicativeScalingAligner: single-pass probability scaling
- SBDAligner / SBDLAligner: sort-by-difference ranking
- SidewalkAligner: cumulative-probability carries
- ResamplingAligner: redraws agents' outcomes
"""

from .logit_scaling import LogitScalingAligner, LogitScalingWeightedAligner
from .logit_scaling_binary import (
    LogitScalingBinaryAligner,
    LogitScalingBinaryWeightedAligner,
)
from .multiplicative import MultiplicativeScalingAligner
from .resampling import ResamplingAligner
from .sidewalk import SidewalkAligner
from .sort_by_difference import SBDAligner, SBDLAligner

__all__ = [
    "LogitScalingAligner",
    "LogitScalingWeightedAligner",
    "LogitScalingBinaryAligner",
    "LogitScalingBinaryWeightedAligner",
    "MultiplicativeScalingAligner",
    "ResamplingAligner",
    "SidewalkAligner",
    "SBDAligner",
    "SBDLAligner",
]
