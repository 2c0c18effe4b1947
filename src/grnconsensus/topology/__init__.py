"""
Network topology: scale-free fit checks, topology-adaptive filtering and hubs.
"""

from grnconsensus.topology.power_law import (
    NET_TYPES,
    PowerLawFit,
    check_scale_free,
    cormat_to_edgelist,
    degree_sequence,
    fit_power_law,
)
from grnconsensus.topology.filtering import (
    FILTER_POLICIES,
    CandidateFit,
    FilterResult,
    candidate_sizes,
    filter_by_topology,
)
from grnconsensus.topology.hubs import get_hubs

__all__ = [
    'NET_TYPES',
    'PowerLawFit',
    'check_scale_free',
    'cormat_to_edgelist',
    'degree_sequence',
    'fit_power_law',
    'FILTER_POLICIES',
    'CandidateFit',
    'FilterResult',
    'candidate_sizes',
    'filter_by_topology',
    'get_hubs',
]
