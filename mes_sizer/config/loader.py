"""
Configuration management and loading.

Handles the sizing constant tables and scenario input files.
"""

import logging
import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from mes_sizer.core.compute import (
    COMPUTE_BASE,
    CPU_TIERS,
    ComputeBase,
    ComputeInputs,
    CpuTier,
    CpuTierTable,
)
from mes_sizer.core.modules import MES_MODULE_CATALOG, Module, ModuleCatalog
from mes_sizer.core.storage import STORAGE_DEFAULTS, StorageDefaults, StorageInputs

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENTS = {
    "single": 1.0,
    "high_availability": 2.0,
}


@dataclass(frozen=True)
class SizingConfig:
    """Complete set of constant tables used by the estimators."""
    storage: StorageDefaults = STORAGE_DEFAULTS
    compute: ComputeBase = COMPUTE_BASE
    catalog: ModuleCatalog = MES_MODULE_CATALOG
    cpu_tiers: CpuTierTable = CPU_TIERS
    environments: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_ENVIRONMENTS))

    def __post_init__(self):
        """Validate environment presets are positive."""
        for name, factor in self.environments.items():
            if factor <= 0:
                raise ValueError(f"Environment '{name}' factor must be > 0")

    def resolve_environment(self, value: str) -> float:
        """Resolve a preset name or a numeric string to an environment factor.

        Raises:
            ValueError: If value is neither a known preset nor a number
        """
        key = value.strip().lower()
        if key in self.environments:
            return self.environments[key]
        try:
            return float(key)
        except ValueError:
            raise ValueError(
                f"Unknown environment '{value}'. Use a number or one of: "
                f"{sorted(self.environments)}"
            )


@dataclass(frozen=True)
class Scenario:
    """Estimator inputs read from a scenario file."""
    storage: StorageInputs
    compute: ComputeInputs


def default_sizing_config() -> SizingConfig:
    """Built-in constant tables."""
    return SizingConfig()


def coerce_number(value: Any) -> float:
    """Coerce a raw input value to a float.

    Missing or blank values become 0.0. Anything else that does not parse
    becomes NaN so the display layer shows a placeholder.
    """
    if value is None:
        return 0.0
    if isinstance(value, str) and not value.strip():
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def load_sizing_config(path: str) -> SizingConfig:
    """Load and validate sizing tables from a YAML file.

    Every section is optional and replaces the built-in table it names.
    Validation is strict so a typo cannot silently fall back to a default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated SizingConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    raw_config = _read_yaml(path, "Sizing config")

    allowed_top_keys = {'storage', 'compute', 'modules', 'cpu_tiers', 'environments'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    config = default_sizing_config()

    if 'storage' in raw_config:
        values = _parse_number_section(raw_config['storage'], StorageDefaults, "storage")
        config = replace(config, storage=replace(config.storage, **values))

    if 'compute' in raw_config:
        values = _parse_number_section(raw_config['compute'], ComputeBase, "compute")
        config = replace(config, compute=replace(config.compute, **values))

    if 'modules' in raw_config:
        config = replace(config, catalog=_parse_modules(raw_config['modules']))

    if 'cpu_tiers' in raw_config:
        config = replace(config, cpu_tiers=_parse_cpu_tiers(raw_config['cpu_tiers']))

    if 'environments' in raw_config:
        config = replace(config, environments=_parse_environments(raw_config['environments']))

    logger.debug("Loaded sizing config from %s", path)
    return config


def load_scenario(path: str, config: Optional[SizingConfig] = None) -> Scenario:
    """Load estimator inputs from a YAML scenario file.

    Values are coerced rather than validated: blanks become 0 and unparsable
    values become NaN. Missing fields take the configured defaults. The
    compute estimate shares the storage asset count.

    Args:
        path: Path to YAML scenario file
        config: Tables providing defaults, module ids and environment presets

    Returns:
        Scenario with storage and compute inputs

    Raises:
        FileNotFoundError: If scenario file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If the file structure is invalid or names an unknown module
    """
    config = config or default_sizing_config()
    raw = _read_yaml(path, "Scenario")

    unknown_keys = set(raw.keys()) - {'storage', 'compute'}
    if unknown_keys:
        raise ValueError(f"Unknown scenario keys: {unknown_keys}")

    storage_data = _require_dict(raw.get('storage') or {}, "storage")
    storage_fields = {f.name for f in fields(StorageInputs)}
    unknown_storage = set(storage_data.keys()) - storage_fields
    if unknown_storage:
        raise ValueError(f"Unknown keys in storage: {unknown_storage}")

    defaults = config.storage.to_inputs()
    storage = replace(
        defaults,
        **{name: coerce_number(value) for name, value in storage_data.items()}
    )

    compute_data = _require_dict(raw.get('compute') or {}, "compute")
    unknown_compute = set(compute_data.keys()) - {'retention_months', 'environment', 'modules'}
    if unknown_compute:
        raise ValueError(f"Unknown keys in compute: {unknown_compute}")

    retention = config.compute.retention_months
    if 'retention_months' in compute_data:
        retention = coerce_number(compute_data['retention_months'])

    environment = config.compute.environment_factor
    if 'environment' in compute_data:
        raw_env = compute_data['environment']
        if isinstance(raw_env, str) and raw_env.strip().lower() in config.environments:
            environment = config.environments[raw_env.strip().lower()]
        else:
            environment = coerce_number(raw_env)

    module_ids = compute_data.get('modules') or []
    if not isinstance(module_ids, list):
        raise ValueError("'compute.modules' must be a list")
    for module_id in module_ids:
        config.catalog.get_module(str(module_id))

    compute = ComputeInputs(
        asset_count=storage.asset_count,
        retention_months=retention,
        environment_factor=environment,
        enabled_module_ids=frozenset(str(m) for m in module_ids),
    )

    logger.debug("Loaded scenario from %s", path)
    return Scenario(storage=storage, compute=compute)


def _read_yaml(path: str, kind: str) -> Dict:
    """Read a YAML mapping from disk."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"{kind} file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in {kind.lower()} file {path}: {e}")

    if not raw:
        raise ValueError(f"{kind} file is empty")
    if not isinstance(raw, dict):
        raise ValueError(f"{kind} file must contain a mapping")
    return raw


def _require_dict(data: Any, path: str) -> Dict:
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must be a dictionary")
    return data


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_number_section(data: Any, cls: type, path: str) -> Dict[str, float]:
    """Parse a flat mapping of numeric overrides for a dataclass.

    Args:
        data: Raw section data
        cls: Dataclass whose fields are the allowed keys
        path: Path for error messages

    Returns:
        Field overrides as floats

    Raises:
        ValueError: If the section has unknown keys or non-numeric values
    """
    data = _require_dict(data, path)
    allowed_keys = {f.name for f in fields(cls)}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in {path}: {unknown_keys}")

    values = {}
    for key, value in data.items():
        if not _is_number(value):
            raise ValueError(f"'{key}' in {path} must be a number")
        values[key] = float(value)
    return values


def _parse_modules(data: Any) -> ModuleCatalog:
    """Parse the module list into a catalog, keeping file order."""
    if not isinstance(data, list) or not data:
        raise ValueError("'modules' must be a non-empty list")

    allowed_keys = {f.name for f in fields(Module)}
    number_keys = {'core_factor', 'ram_factor', 'added_storage_per_asset'}
    modules: List[Module] = []
    for index, entry in enumerate(data):
        path = f"modules[{index}]"
        entry = _require_dict(entry, path)
        unknown_keys = set(entry.keys()) - allowed_keys
        if unknown_keys:
            raise ValueError(f"Unknown keys in {path}: {unknown_keys}")
        for key in ('id', 'name'):
            if not isinstance(entry.get(key), str) or not entry[key].strip():
                raise ValueError(f"Missing required '{key}' in {path}")
        for key in number_keys & set(entry.keys()):
            if not _is_number(entry[key]):
                raise ValueError(f"'{key}' in {path} must be a number")
        if 'mandatory' in entry and not isinstance(entry['mandatory'], bool):
            raise ValueError(f"'mandatory' in {path} must be a boolean")

        modules.append(Module(
            id=entry['id'],
            name=entry['name'],
            description=str(entry.get('description') or ""),
            core_factor=float(entry.get('core_factor', 0)),
            ram_factor=float(entry.get('ram_factor', 0)),
            added_storage_per_asset=float(entry.get('added_storage_per_asset') or 0),
            mandatory=entry.get('mandatory', False),
        ))

    return ModuleCatalog(tuple(modules))


def _parse_cpu_tiers(data: Any) -> CpuTierTable:
    """Parse the CPU tier table."""
    data = _require_dict(data, "cpu_tiers")
    unknown_keys = set(data.keys()) - {'tiers', 'fallback_label'}
    if unknown_keys:
        raise ValueError(f"Unknown keys in cpu_tiers: {unknown_keys}")
    if 'fallback_label' not in data or not isinstance(data['fallback_label'], str):
        raise ValueError("Missing required 'fallback_label' in cpu_tiers")

    raw_tiers = data.get('tiers') or []
    if not isinstance(raw_tiers, list):
        raise ValueError("'cpu_tiers.tiers' must be a list")

    tiers = []
    for index, entry in enumerate(raw_tiers):
        path = f"cpu_tiers.tiers[{index}]"
        entry = _require_dict(entry, path)
        if set(entry.keys()) != {'max_cores', 'label'}:
            raise ValueError(f"{path} must have exactly 'max_cores' and 'label'")
        if not _is_number(entry['max_cores']):
            raise ValueError(f"'max_cores' in {path} must be a number")
        tiers.append(CpuTier(max_cores=float(entry['max_cores']), label=str(entry['label'])))

    return CpuTierTable(tiers=tuple(tiers), fallback_label=data['fallback_label'])


def _parse_environments(data: Any) -> Dict[str, float]:
    """Parse named environment factors."""
    data = _require_dict(data, "environments")
    environments = {}
    for name, factor in data.items():
        if not _is_number(factor) or factor <= 0:
            raise ValueError(f"Environment '{name}' factor must be > 0")
        environments[str(name).lower()] = float(factor)
    return environments
