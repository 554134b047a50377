"""
MES feature module catalog.

Static table of feature modules and the resource factors they add to a deployment.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, Tuple


@dataclass(frozen=True)
class Module:
    """A feature area of the MES with its resource-cost factors."""
    id: str
    name: str
    description: str = ""
    core_factor: float = 0.0  # Additive contribution to the core multiplier
    ram_factor: float = 0.0  # Additive contribution to the RAM multiplier
    added_storage_per_asset: float = 0.0  # MB per asset per month
    mandatory: bool = False

    def __post_init__(self):
        """Validate factors are non-negative."""
        if not self.id:
            raise ValueError("module id cannot be empty")
        if self.core_factor < 0:
            raise ValueError(f"Module {self.id}: core_factor cannot be negative")
        if self.ram_factor < 0:
            raise ValueError(f"Module {self.id}: ram_factor cannot be negative")
        if self.added_storage_per_asset < 0:
            raise ValueError(f"Module {self.id}: added_storage_per_asset cannot be negative")


@dataclass(frozen=True)
class ModuleCatalog:
    """Ordered, immutable collection of modules.

    Declaration order is preserved for display. Exactly one module must be
    mandatory and it anchors the baseline, so it may not carry core or RAM
    factors of its own.
    """
    modules: Tuple[Module, ...]

    def __post_init__(self):
        """Validate catalog invariants."""
        seen = set()
        for module in self.modules:
            if module.id in seen:
                raise ValueError(f"Duplicate module id: {module.id}")
            seen.add(module.id)

        mandatory = [m for m in self.modules if m.mandatory]
        if len(mandatory) != 1:
            raise ValueError(
                f"Catalog must contain exactly one mandatory module, found {len(mandatory)}"
            )
        baseline = mandatory[0]
        if baseline.core_factor != 0 or baseline.ram_factor != 0:
            raise ValueError(
                f"Mandatory module {baseline.id} must have zero core_factor and ram_factor"
            )

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules)

    def __len__(self) -> int:
        return len(self.modules)

    def __contains__(self, module_id: object) -> bool:
        return any(m.id == module_id for m in self.modules)

    @property
    def ids(self) -> Tuple[str, ...]:
        """Module ids in declaration order."""
        return tuple(m.id for m in self.modules)

    @property
    def mandatory_ids(self) -> FrozenSet[str]:
        """Ids of modules that are always enabled."""
        return frozenset(m.id for m in self.modules if m.mandatory)

    def get_module(self, module_id: str) -> Module:
        """Get a module by id.

        Args:
            module_id: Module identifier

        Returns:
            The matching Module

        Raises:
            ValueError: If the module is not in the catalog
        """
        for module in self.modules:
            if module.id == module_id:
                return module
        raise ValueError(f"Unknown module: {module_id}")

    def enabled_modules(self, selected_ids: Iterable[str]) -> Tuple[Module, ...]:
        """Modules considered enabled for a selection, in declaration order.

        Mandatory modules are always included. Ids not in the catalog are ignored.
        """
        selected = frozenset(selected_ids) | self.mandatory_ids
        return tuple(m for m in self.modules if m.id in selected)


# Fixed module table - tune factors here, estimators read them as data
MES_MODULE_CATALOG = ModuleCatalog((
    Module(
        id="core_mes",
        name="Core MES (mandatory)",
        description="User Mgmt, Auth, Alerts, Scheduling, MDM, OEE",
        core_factor=0,
        ram_factor=0,
        added_storage_per_asset=100,
        mandatory=True,
    ),
    Module(
        id="opcua_connector",
        name="OPCUA Connector using Kepware",
        description="Real-time data collection",
        core_factor=0.1,
        ram_factor=0.05,
        added_storage_per_asset=10,
    ),
    Module(
        id="recipe_mgmt",
        name="Recipe / Parameter Management",
        description="Versioning, approvals",
        core_factor=0.1,
        ram_factor=0.1,
        added_storage_per_asset=100,
    ),
    Module(
        id="digital_batchcard",
        name="Digital Batchcard / Work Instructions",
        description="Checklists, attachments",
        core_factor=0.1,
        ram_factor=0.1,
        added_storage_per_asset=200,
    ),
    Module(
        id="traceability",
        name="Traceability / Genealogy",
        description="Where-used, serial tracking",
        core_factor=0.15,
        ram_factor=0.15,
        added_storage_per_asset=100,
    ),
    Module(
        id="production_planning",
        name="Production Planning",
        description="Scheduling, dispatching",
        core_factor=0.1,
        ram_factor=0.07,
        added_storage_per_asset=50,
    ),
    Module(
        id="downtime",
        name="Downtime Tracking",
        description="Loss models, analytics",
        core_factor=0.12,
        ram_factor=0.1,
        added_storage_per_asset=50,
    ),
    Module(
        id="maintenance",
        name="Maintenance / CMMS Lite",
        description="Work orders, PM, asset registry",
        core_factor=0.08,
        ram_factor=0.07,
        added_storage_per_asset=50,
    ),
    Module(
        id="capa_nc",
        name="CAPA / Non-Conformance",
        description="Issues, workflows, approvals",
        core_factor=0.07,
        ram_factor=0.07,
        added_storage_per_asset=50,
    ),
    Module(
        id="data_connectors",
        name="Data Connectors / APIs",
        description="External systems integration",
        core_factor=0.08,
        ram_factor=0.06,
        added_storage_per_asset=10,
    ),
    Module(
        id="external_connectors",
        name="ERP Connectors",
        description="SAP, Oracle, D365",
        core_factor=0.08,
        ram_factor=0.06,
        added_storage_per_asset=100,
    ),
))
