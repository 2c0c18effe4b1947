"""
grnconsensus - Ensemble Gene Regulatory Network Inference

Runs several network inference methods (GENIE3, CLR, ARACNE) on the same
expression matrix, combines their edge rankings into one consensus ordering
and keeps the network size whose regulator out-degree distribution is most
consistent with a scale-free topology.
"""

__version__ = "0.1.0"

from grnconsensus.config import AdapterConfig, PipelineConfig
from grnconsensus.consensus import aggregate_ranks
from grnconsensus.core.expression import ExpressionMatrix
from grnconsensus.inference import run_ensemble
from grnconsensus.pipeline import NetworkResult, RunManifest, infer_network
from grnconsensus.topology import check_scale_free, filter_by_topology, get_hubs

__all__ = [
    "AdapterConfig",
    "PipelineConfig",
    "ExpressionMatrix",
    "NetworkResult",
    "RunManifest",
    "aggregate_ranks",
    "check_scale_free",
    "filter_by_topology",
    "get_hubs",
    "infer_network",
    "run_ensemble",
]
