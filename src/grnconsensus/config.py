"""
Pipeline configuration.

Supports YAML and JSON config files. Configuration is an explicit object
passed to the pipeline; there is no process-wide default registry.

Example YAML:

    adapters:
      - name: genie3
        params: {n_trees: 500, random_state: 42}
      - name: clr
      - name: aracne
        params: {estimator: spearman, eps: 0.0}
    quantile_steps: 10
    tie_break: [Regulator, Target]
    on_adapter_failure: skip
    selection_policy: best

camelCase keys (``quantileSteps``, ``tieBreak``, ``onAdapterFailure``) and
``parameters`` instead of ``params`` are accepted as well.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from grnconsensus.consensus.aggregation import DEFAULT_TIE_BREAK
from grnconsensus.inference.ensemble import FAILURE_POLICIES
from grnconsensus.inference.registry import create_scorer
from grnconsensus.inference.types import EdgeScorer, ScorerName
from grnconsensus.topology.filtering import FILTER_POLICIES

__all__ = [
    'UNFITTABLE_POLICIES',
    'AdapterConfig',
    'PipelineConfig',
    'load_config',
    'normalize_config_keys',
    'load_pipeline_config',
]

UNFITTABLE_POLICIES = ("unfiltered", "raise")

_KEY_ALIASES = {
    'quantileSteps': 'quantile_steps',
    'tieBreak': 'tie_break',
    'onAdapterFailure': 'on_adapter_failure',
    'selectionPolicy': 'selection_policy',
    'onUnfittable': 'on_unfittable',
    'maxWorkers': 'max_workers',
}


@dataclass
class AdapterConfig:
    """One scorer of the ensemble and its constructor parameters."""
    name: str
    params: Dict[str, Any] = field(default_factory=dict)

    def build(self) -> EdgeScorer:
        return create_scorer(self.name, **self.params)


def _default_adapters() -> List[AdapterConfig]:
    return [
        AdapterConfig(ScorerName.GENIE3.value, {"n_trees": 1000}),
        AdapterConfig(ScorerName.CLR.value, {"estimator": "pearson"}),
        AdapterConfig(ScorerName.ARACNE.value, {"estimator": "spearman", "eps": 0.0}),
    ]


@dataclass
class PipelineConfig:
    """
    Complete configuration of one inference run.

    Attributes:
        adapters: Scorers to run (default GENIE3, CLR, ARACNE)
        quantile_steps: Number of candidate networks k (>= 2)
        tie_break: Secondary sort key of the consensus
        on_adapter_failure: "skip" or "abort"
        selection_policy: "best" or "first"
        alpha: KS p-value cutoff for the "first" policy
        on_unfittable: "unfiltered" (return the whole consensus) or "raise"
        parallel: Run scorers on a thread pool
        max_workers: Thread pool bound
        timeout: Seconds per scorer before it counts as failed
    """
    adapters: List[AdapterConfig] = field(default_factory=_default_adapters)
    quantile_steps: int = 10
    tie_break: Tuple[str, ...] = DEFAULT_TIE_BREAK
    on_adapter_failure: str = "skip"
    selection_policy: str = "best"
    alpha: float = 0.05
    on_unfittable: str = "unfiltered"
    parallel: bool = True
    max_workers: int = 4
    timeout: Optional[float] = None

    def __post_init__(self):
        self.tie_break = tuple(self.tie_break)
        validate_pipeline_config(self)

    def build_scorers(self) -> List[EdgeScorer]:
        return [adapter.build() for adapter in self.adapters]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['tie_break'] = list(self.tie_break)
        return data

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "PipelineConfig":
        """
        Build a PipelineConfig from a config mapping.

        Unknown keys raise ValueError so typos do not pass silently.
        """
        values = normalize_config_keys(config)

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

        if 'adapters' in values:
            values['adapters'] = [_parse_adapter(a) for a in values['adapters'] or []]

        return cls(**values)


def normalize_config_keys(config: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase configuration keys to their snake_case field names."""
    return {_KEY_ALIASES.get(k, k): v for k, v in config.items()}


def _parse_adapter(entry: Any) -> AdapterConfig:
    if isinstance(entry, str):
        return AdapterConfig(name=entry)
    if isinstance(entry, dict):
        if 'name' not in entry:
            raise ValueError(f"Adapter entry without a name: {entry}")
        params = entry.get('params', entry.get('parameters')) or {}
        if not isinstance(params, dict):
            raise ValueError(f"Adapter parameters must be a mapping, got: {params}")
        return AdapterConfig(name=str(entry['name']), params=dict(params))
    raise ValueError(f"Invalid adapter entry: {entry}")


def validate_pipeline_config(config: PipelineConfig) -> None:
    """
    Validate configuration values.

    Raises:
        ValueError: If any value is out of range or unknown
    """
    if not config.adapters:
        raise ValueError("At least one adapter must be configured")

    valid_names = [n.value for n in ScorerName]
    for adapter in config.adapters:
        if str(adapter.name).lower() not in valid_names:
            raise ValueError(
                f"Invalid adapter '{adapter.name}'. Choose from: {', '.join(valid_names)}"
            )
    names = [str(a.name).lower() for a in config.adapters]
    if len(set(names)) != len(names):
        raise ValueError(f"Each adapter may be configured only once, got: {names}")

    steps = config.quantile_steps
    if isinstance(steps, bool) or not isinstance(steps, int) or steps < 2:
        raise ValueError(f"quantile_steps must be an integer >= 2, got: {steps}")

    if sorted(config.tie_break) != sorted(DEFAULT_TIE_BREAK):
        raise ValueError(
            f"tie_break must be an ordering of {list(DEFAULT_TIE_BREAK)}, got: {list(config.tie_break)}"
        )

    choices = {
        'on_adapter_failure': FAILURE_POLICIES,
        'selection_policy': FILTER_POLICIES,
        'on_unfittable': UNFITTABLE_POLICIES,
    }
    for key, valid in choices.items():
        value = getattr(config, key)
        if value not in valid:
            raise ValueError(f"Invalid {key} '{value}'. Choose from: {', '.join(valid)}")

    if not isinstance(config.alpha, (int, float)) or not 0 < config.alpha < 1:
        raise ValueError(f"alpha must be in (0, 1), got: {config.alpha}")
    if not isinstance(config.max_workers, int) or config.max_workers < 1:
        raise ValueError(f"max_workers must be a positive integer, got: {config.max_workers}")
    if config.timeout is not None and config.timeout <= 0:
        raise ValueError(f"timeout must be positive, got: {config.timeout}")


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    try:
        with open(config_path, 'r') as f:
            if suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            elif suffix == '.json':
                config = json.load(f)
            else:
                raise ValueError(
                    f"Unsupported config format: {suffix}. "
                    f"Use .yaml, .yml, or .json"
                )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def load_pipeline_config(config_path: Path) -> PipelineConfig:
    """Load and validate a PipelineConfig from a YAML or JSON file."""
    return PipelineConfig.from_dict(load_config(config_path))
