"""
Fire Panel Configuration

Dataclass configs for each subsystem, plus PanelConfig.from_env() for the
server. Credentials are never defaulted: they must be injected.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .domain.enums import ResourceKind


ENV_PREFIX = "FIREPANEL_"


@dataclass
class ReserveConfig:
    """Reserve tank capacities in liters."""
    water_capacity_liters: float = 5000
    foam_capacity_liters: float = 1000

    def capacities(self) -> dict[ResourceKind, float]:
        return {
            ResourceKind.WATER: self.water_capacity_liters,
            ResourceKind.FOAM: self.foam_capacity_liters,
        }


@dataclass
class LightingConfig:
    """Timing and charge rules for the emergency lighting battery."""
    test_duration_sec: float = 15
    test_charge_draw: float = 2

    # Battery runtime window (percent)
    discharge_per_sec: float = 1
    discharge_floor: float = 85
    recharge_per_sec: float = 2


@dataclass
class PanelConfig:
    """Top-level panel configuration."""
    primary_secret: str
    secondary_code: str
    reserves: ReserveConfig = field(default_factory=ReserveConfig)
    lighting: LightingConfig = field(default_factory=LightingConfig)

    # None = unbounded audit log
    audit_max_entries: Optional[int] = None

    # Notifications retained for the API history view
    notification_history: int = 200

    def __post_init__(self):
        if not self.primary_secret or not self.secondary_code:
            raise ValueError("primary_secret and secondary_code must be configured")
        if self.audit_max_entries is not None and self.audit_max_entries < 1:
            raise ValueError("audit_max_entries must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PanelConfig":
        """Build config from FIREPANEL_* environment variables.

        Required:
            FIREPANEL_PRIMARY_SECRET, FIREPANEL_SECONDARY_CODE
        Optional:
            FIREPANEL_WATER_CAPACITY_L, FIREPANEL_FOAM_CAPACITY_L,
            FIREPANEL_AUDIT_MAX_ENTRIES, FIREPANEL_TEST_DURATION_SEC
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value if value not in (None, "") else None

        primary = get("PRIMARY_SECRET")
        secondary = get("SECONDARY_CODE")
        if primary is None or secondary is None:
            raise ValueError(
                f"{ENV_PREFIX}PRIMARY_SECRET and {ENV_PREFIX}SECONDARY_CODE must be set"
            )

        reserves = ReserveConfig()
        if get("WATER_CAPACITY_L"):
            reserves.water_capacity_liters = float(get("WATER_CAPACITY_L"))
        if get("FOAM_CAPACITY_L"):
            reserves.foam_capacity_liters = float(get("FOAM_CAPACITY_L"))

        lighting = LightingConfig()
        if get("TEST_DURATION_SEC"):
            lighting.test_duration_sec = float(get("TEST_DURATION_SEC"))

        audit_max = get("AUDIT_MAX_ENTRIES")

        return cls(
            primary_secret=primary,
            secondary_code=secondary,
            reserves=reserves,
            lighting=lighting,
            audit_max_entries=int(audit_max) if audit_max else None,
        )
