"""
Merging of config-file values with command-line arguments.

Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

Config keys and the ``infer`` arguments they feed:

    input               -> --input
    regulators          -> --regulators
    output              -> --output
    adapters            -> --methods (names; params stay in the config)
    quantile_steps      -> --n-steps
    selection_policy    -> --policy
    on_adapter_failure  -> --on-failure
    alpha               -> --alpha
    max_workers         -> --workers
    timeout             -> --timeout
"""

from argparse import Namespace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from grnconsensus.config import AdapterConfig, PipelineConfig, normalize_config_keys
from grnconsensus.inference.types import ScorerName

__all__ = ['merge_config_with_args', 'build_pipeline_config']

_PATH_KEYS = ('input', 'regulators', 'output')

# config key -> argparse dest
_PIPELINE_MAPPINGS = {
    'quantile_steps': 'n_steps',
    'selection_policy': 'policy',
    'on_adapter_failure': 'on_failure',
    'alpha': 'alpha',
    'max_workers': 'workers',
    'timeout': 'timeout',
}

_SHORT_TO_LONG = {
    'i': 'input',
    'r': 'regulators',
    'o': 'output',
    'c': 'config',
    'm': 'methods',
}


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with CLI argument.

    Rules:
    - CLI args ALWAYS override config if explicitly set
    - If CLI arg not set, use config value
    - If neither set, keep CLI default
    """
    if was_explicitly_set:
        return cli_value

    if config_value is not None:
        return config_value

    return cli_value


def _explicit_args(cli_args: Optional[Iterable[str]]) -> Set[str]:
    """Destination names of the options present on the command line."""
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            explicit.add(arg[2:].split('=', 1)[0].replace('-', '_'))
        elif arg.startswith('-') and len(arg) == 2 and arg[1] in _SHORT_TO_LONG:
            explicit.add(_SHORT_TO_LONG[arg[1]])
    return explicit


def _adapter_name(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get('name'))
    return str(entry)


def merge_config_with_args(config: Dict[str, Any], args: Namespace, cli_args: Optional[List[str]] = None) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values)
                  If None, assumes all args are defaults

    Returns:
        Updated Namespace with merged values

    Examples:
        >>> config = {"quantile_steps": 20, "selection_policy": "first"}
        >>> args = parser.parse_args(["infer", "--policy", "best"])
        >>> merged = merge_config_with_args(config, args, ["--policy", "best"])
        >>> merged.n_steps, merged.policy
        (20, 'best')
    """
    config = normalize_config_keys(config)
    explicit = _explicit_args(cli_args)
    merged = Namespace(**vars(args))

    for key in _PATH_KEYS:
        if key in config and hasattr(merged, key):
            value = config[key]
            if value is not None:
                value = Path(value)
            setattr(merged, key, _merge_value(getattr(merged, key), value, key in explicit))

    for config_key, arg_name in _PIPELINE_MAPPINGS.items():
        if config_key in config and hasattr(merged, arg_name):
            setattr(merged, arg_name, _merge_value(
                getattr(merged, arg_name), config[config_key], arg_name in explicit
            ))

    if 'adapters' in config and hasattr(merged, 'methods'):
        names = [_adapter_name(a) for a in config['adapters'] or []]
        merged.methods = _merge_value(merged.methods, names or None, 'methods' in explicit)

    return merged


def build_pipeline_config(args: Namespace, config: Optional[Dict[str, Any]] = None) -> PipelineConfig:
    """
    PipelineConfig for merged ``infer`` arguments.

    Adapter parameters come from the config file; ``--n-trees`` and ``--seed``
    override the GENIE3 entries. Config keys without a CLI counterpart
    (tie_break, on_unfittable, ...) pass through unchanged.

    Raises:
        ValueError: If a value is invalid
    """
    values = {
        k: v for k, v in normalize_config_keys(config or {}).items()
        if k not in _PATH_KEYS
    }
    configured = PipelineConfig.from_dict(values) if values else PipelineConfig()
    params_by_name = {a.name.lower(): dict(a.params) for a in configured.adapters}

    methods = args.methods or [a.name for a in configured.adapters]
    adapters = []
    for name in methods:
        params = params_by_name.get(name.lower(), {})
        if name.lower() == ScorerName.GENIE3.value:
            if args.n_trees is not None:
                params['n_trees'] = args.n_trees
            if args.seed is not None:
                params['random_state'] = args.seed
        adapters.append(AdapterConfig(name=name, params=params))

    overrides = {
        config_key: getattr(args, arg_name)
        for config_key, arg_name in _PIPELINE_MAPPINGS.items()
    }
    merged = {**configured.to_dict(), **overrides}
    merged['adapters'] = [{'name': a.name, 'params': a.params} for a in adapters]
    merged['parallel'] = configured.parallel and not args.sequential
    return PipelineConfig.from_dict(merged)
