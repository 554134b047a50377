"""
Compute resource estimation.

Sizes CPU cores, RAM and process-data storage for an asset count and a set of
enabled MES modules. Provisioned figures are rounded up to half units.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from .modules import MES_MODULE_CATALOG, Module, ModuleCatalog

logger = logging.getLogger(__name__)

MB_PER_GB = 1024


@dataclass(frozen=True)
class ComputeBase:
    """Baseline compute requirements and per-asset increments."""
    base_cores: float = 8
    base_ram_gb: float = 16
    per_asset_core: float = 0.05
    per_asset_ram_gb: float = 0.1
    process_data_base_mb: float = 100  # MB per month of retention
    retention_months: float = 6  # Default process-data retention
    environment_factor: float = 1.0  # Default deployment tier

    def __post_init__(self):
        """Validate base values are reasonable."""
        for name in (
            "base_cores",
            "base_ram_gb",
            "per_asset_core",
            "per_asset_ram_gb",
            "process_data_base_mb",
            "retention_months",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.environment_factor <= 0:
            raise ValueError("environment_factor must be > 0")


@dataclass(frozen=True)
class CpuTier:
    """CPU recommendation for deployments up to max_cores."""
    max_cores: float
    label: str


@dataclass(frozen=True)
class CpuTierTable:
    """Ascending CPU tiers with a catch-all label for larger deployments."""
    tiers: Tuple[CpuTier, ...]
    fallback_label: str

    def __post_init__(self):
        """Validate tiers are strictly ascending."""
        bounds = [tier.max_cores for tier in self.tiers]
        for lower, upper in zip(bounds, bounds[1:]):
            if upper <= lower:
                raise ValueError("CPU tier bounds must be strictly ascending")
        if not self.fallback_label:
            raise ValueError("fallback_label cannot be empty")


@dataclass(frozen=True)
class ComputeInputs:
    """Compute sizing parameters.

    retention_months is independent of the historian retention period.
    """
    asset_count: float
    retention_months: float
    environment_factor: float
    enabled_module_ids: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ComputeResult:
    """Compute estimate with intermediate figures."""
    cores: float
    ram_gb: float
    process_storage_gb: float
    process_storage_mb: float
    base_cores: float
    base_ram_gb: float
    core_factor_sum: float
    ram_factor_sum: float
    added_storage_per_asset_sum: float
    enabled_modules: Tuple[Module, ...]
    recommended_cpu_label: str

    @property
    def core_multiplier(self) -> float:
        return 1 + self.core_factor_sum

    @property
    def ram_multiplier(self) -> float:
        return 1 + self.ram_factor_sum


COMPUTE_BASE = ComputeBase()

CPU_TIERS = CpuTierTable(
    tiers=(
        CpuTier(4, "Intel Core i3-13100 (4 Cores)"),
        CpuTier(8, "Intel Core i5-13500 (14 Cores / 20 Threads)"),
        CpuTier(16, "Intel Core i7-13700 (24 Threads)"),
        CpuTier(24, "Intel Core i9-13900 (32 Threads)"),
    ),
    fallback_label="Intel Xeon Silver 4410Y (Multi-Socket Server)",
)


def round_to_half_step_ceil(value: float) -> float:
    """Round up to the nearest multiple of 0.5.

    Values whose doubling is non-finite (NaN, infinity, or finite values
    near the float maximum) come back as that doubled value halved.
    """
    doubled = value * 2
    if not math.isfinite(doubled):
        return doubled / 2
    return math.ceil(doubled) / 2


def recommend_cpu(cores: float, tiers: CpuTierTable = CPU_TIERS) -> str:
    """Pick the first tier whose bound covers the core count.

    Args:
        cores: Provisioned core count
        tiers: Ascending CPU tier table

    Returns:
        Advisory CPU label
    """
    for tier in tiers.tiers:
        if cores <= tier.max_cores:
            return tier.label
    return tiers.fallback_label


def estimate_compute(
    inputs: ComputeInputs,
    catalog: ModuleCatalog = MES_MODULE_CATALOG,
    base: ComputeBase = COMPUTE_BASE,
    cpu_tiers: CpuTierTable = CPU_TIERS,
) -> ComputeResult:
    """Estimate compute resources for the enabled module set.

    Cores, RAM and process storage each get the environment factor applied
    separately, then are rounded up to half units. Process storage scales
    the base requirement and the per-asset module storage with retention.

    Args:
        inputs: Compute sizing parameters
        catalog: Module table to sum factors from
        base: Baseline compute constants
        cpu_tiers: Table for the advisory CPU label

    Returns:
        ComputeResult with provisioned figures and intermediates
    """
    enabled = catalog.enabled_modules(inputs.enabled_module_ids)
    logger.debug("Enabled modules: %s", ", ".join(m.id for m in enabled))

    core_factor_sum = sum(m.core_factor for m in enabled)
    ram_factor_sum = sum(m.ram_factor for m in enabled)
    added_storage_per_asset_sum = sum(m.added_storage_per_asset for m in enabled)

    base_cores = base.base_cores + inputs.asset_count * base.per_asset_core
    base_ram_gb = base.base_ram_gb + inputs.asset_count * base.per_asset_ram_gb

    cores = round_to_half_step_ceil(
        base_cores * (1 + core_factor_sum) * inputs.environment_factor
    )
    ram_gb = round_to_half_step_ceil(
        base_ram_gb * (1 + ram_factor_sum) * inputs.environment_factor
    )

    base_storage_mb = base.process_data_base_mb * inputs.retention_months
    module_storage_mb = (
        added_storage_per_asset_sum * inputs.asset_count * inputs.retention_months
    )
    process_storage_mb = base_storage_mb + module_storage_mb
    process_storage_gb = round_to_half_step_ceil(
        (process_storage_mb / MB_PER_GB) * inputs.environment_factor
    )

    return ComputeResult(
        cores=cores,
        ram_gb=ram_gb,
        process_storage_gb=process_storage_gb,
        process_storage_mb=process_storage_mb,
        base_cores=base_cores,
        base_ram_gb=base_ram_gb,
        core_factor_sum=core_factor_sum,
        ram_factor_sum=ram_factor_sum,
        added_storage_per_asset_sum=added_storage_per_asset_sum,
        enabled_modules=enabled,
        recommended_cpu_label=recommend_cpu(cores, cpu_tiers),
    )
