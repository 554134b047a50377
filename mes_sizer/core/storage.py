"""
Historian storage estimation.

Closed-form estimate of the time-series footprint produced by tag updates
over a retention period.
"""

from dataclasses import dataclass

BYTES_PER_GB = 1024 ** 3
GB_PER_TB = 1024
MINUTES_PER_DAY = 60 * 24


@dataclass(frozen=True)
class StorageDefaults:
    """Default storage inputs and calendar constants."""
    asset_count: float = 4
    tags_per_asset: float = 150
    updates_per_minute_per_tag: float = 60
    retention_months: float = 12
    row_size_bytes: float = 4
    compression_ratio: float = 0.6
    days_per_month: float = 30

    def __post_init__(self):
        """Validate defaults are usable."""
        if self.days_per_month <= 0:
            raise ValueError("days_per_month must be > 0")
        for name in (
            "asset_count",
            "tags_per_asset",
            "updates_per_minute_per_tag",
            "retention_months",
            "row_size_bytes",
            "compression_ratio",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    def to_inputs(self) -> "StorageInputs":
        """Storage inputs pre-filled with these defaults."""
        return StorageInputs(
            asset_count=self.asset_count,
            tags_per_asset=self.tags_per_asset,
            updates_per_minute_per_tag=self.updates_per_minute_per_tag,
            retention_months=self.retention_months,
            row_size_bytes=self.row_size_bytes,
            compression_ratio=self.compression_ratio,
        )


@dataclass(frozen=True)
class StorageInputs:
    """Storage sizing parameters.

    Values are taken as given. Callers coerce missing or non-numeric input
    before building this.
    """
    asset_count: float
    tags_per_asset: float
    updates_per_minute_per_tag: float
    retention_months: float
    row_size_bytes: float
    compression_ratio: float


@dataclass(frozen=True)
class StorageResult:
    """Storage estimate with raw counts and byte totals."""
    total_tags: float
    updates_per_minute: float
    events_per_day: float
    total_days: float
    total_rows: float
    uncompressed_bytes: float
    compressed_bytes: float

    @property
    def uncompressed_gb(self) -> float:
        return self.uncompressed_bytes / BYTES_PER_GB

    @property
    def uncompressed_tb(self) -> float:
        return self.uncompressed_gb / GB_PER_TB

    @property
    def compressed_gb(self) -> float:
        return self.compressed_bytes / BYTES_PER_GB

    @property
    def compressed_tb(self) -> float:
        return self.compressed_gb / GB_PER_TB


STORAGE_DEFAULTS = StorageDefaults()


def estimate_storage(
    inputs: StorageInputs,
    defaults: StorageDefaults = STORAGE_DEFAULTS,
) -> StorageResult:
    """Estimate historian storage for the given tag load.

    No validation and no rounding: degenerate inputs (zero, negative, NaN)
    flow through the arithmetic and the display layer masks non-finite values.

    Args:
        inputs: Storage sizing parameters
        defaults: Storage constants (only days_per_month is read)

    Returns:
        StorageResult with counts and byte totals
    """
    total_tags = inputs.asset_count * inputs.tags_per_asset
    updates_per_minute = total_tags * inputs.updates_per_minute_per_tag
    events_per_day = updates_per_minute * MINUTES_PER_DAY
    total_days = inputs.retention_months * defaults.days_per_month
    total_rows = events_per_day * total_days

    uncompressed_bytes = total_rows * inputs.row_size_bytes
    compressed_bytes = uncompressed_bytes * inputs.compression_ratio

    return StorageResult(
        total_tags=total_tags,
        updates_per_minute=updates_per_minute,
        events_per_day=events_per_day,
        total_days=total_days,
        total_rows=total_rows,
        uncompressed_bytes=uncompressed_bytes,
        compressed_bytes=compressed_bytes,
    )
