"""
I/O for expression tables, regulator lists, edge lists and run manifests.
"""

from grnconsensus.io.loaders import delimiter_for, load_expression, load_regulators
from grnconsensus.io.writers import write_edge_list, write_manifest

__all__ = [
    'delimiter_for',
    'load_expression',
    'load_regulators',
    'write_edge_list',
    'write_manifest',
]
