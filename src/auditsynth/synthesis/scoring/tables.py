"""Risk-scoring lookup tables.

Factor tables map analyzer attribute values to ordinal levels 1-4 per
dimension. ``COMPOSITE_TABLE`` maps every (likelihood, impact, exposure)
triple to a composite severity. It is written out in full rather than derived
from a product so that each cell can be reviewed and tuned on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from auditsynth.models.enums import Severity

LEVELS = (1, 2, 3, 4)
DEFAULT_LEVEL = 1


@dataclass(frozen=True)
class Factor:
    """An attribute that contributes to one scoring dimension."""

    attribute: str
    levels: dict[Any, int]

    def level_for(self, value: Any) -> int | None:
        """Level for ``value``, or None when the value is not recognized."""
        if isinstance(value, str):
            value = value.strip().lower()
            if value in ("true", "yes"):
                value = True
            elif value in ("false", "no"):
                value = False
        elif not isinstance(value, bool):
            return None
        return self.levels.get(value)


LIKELIHOOD_FACTORS: tuple[Factor, ...] = (
    Factor("requires_auth", {False: 3, True: 1}),
    Factor("exploit_maturity", {"none": 1, "theoretical": 1, "poc": 3, "weaponized": 4}),
    Factor("attack_complexity", {"high": 1, "medium": 2, "low": 3}),
)

IMPACT_FACTORS: tuple[Factor, ...] = (
    Factor(
        "data_sensitivity",
        {"public": 1, "internal": 2, "pii": 3, "financial": 4, "health": 4},
    ),
    Factor("privilege_gained", {"none": 1, "user": 2, "admin": 3, "system": 4}),
)

EXPOSURE_FACTORS: tuple[Factor, ...] = (
    Factor("network_reachability", {"localhost": 1, "internal": 2, "internet": 4}),
)

DIMENSION_FACTORS: dict[str, tuple[Factor, ...]] = {
    "likelihood": LIKELIHOOD_FACTORS,
    "impact": IMPACT_FACTORS,
    "exposure": EXPOSURE_FACTORS,
}

SCORED_ATTRIBUTES: frozenset[str] = frozenset(
    factor.attribute for factors in DIMENSION_FACTORS.values() for factor in factors
)

# (likelihood, impact, exposure) -> composite
COMPOSITE_TABLE: dict[tuple[int, int, int], Severity] = {
    (1, 1, 1): Severity.INFORMATIONAL,
    (1, 1, 2): Severity.INFORMATIONAL,
    (1, 1, 3): Severity.LOW,
    (1, 1, 4): Severity.LOW,
    (1, 2, 1): Severity.INFORMATIONAL,
    (1, 2, 2): Severity.LOW,
    (1, 2, 3): Severity.LOW,
    (1, 2, 4): Severity.MEDIUM,
    (1, 3, 1): Severity.LOW,
    (1, 3, 2): Severity.LOW,
    (1, 3, 3): Severity.MEDIUM,
    (1, 3, 4): Severity.MEDIUM,
    (1, 4, 1): Severity.LOW,
    (1, 4, 2): Severity.MEDIUM,
    (1, 4, 3): Severity.MEDIUM,
    (1, 4, 4): Severity.HIGH,
    (2, 1, 1): Severity.INFORMATIONAL,
    (2, 1, 2): Severity.LOW,
    (2, 1, 3): Severity.LOW,
    (2, 1, 4): Severity.MEDIUM,
    (2, 2, 1): Severity.LOW,
    (2, 2, 2): Severity.LOW,
    (2, 2, 3): Severity.MEDIUM,
    (2, 2, 4): Severity.MEDIUM,
    (2, 3, 1): Severity.LOW,
    (2, 3, 2): Severity.MEDIUM,
    (2, 3, 3): Severity.MEDIUM,
    (2, 3, 4): Severity.MEDIUM,
    (2, 4, 1): Severity.MEDIUM,
    (2, 4, 2): Severity.MEDIUM,
    (2, 4, 3): Severity.MEDIUM,
    (2, 4, 4): Severity.HIGH,
    (3, 1, 1): Severity.LOW,
    (3, 1, 2): Severity.LOW,
    (3, 1, 3): Severity.MEDIUM,
    (3, 1, 4): Severity.MEDIUM,
    (3, 2, 1): Severity.LOW,
    (3, 2, 2): Severity.MEDIUM,
    (3, 2, 3): Severity.MEDIUM,
    (3, 2, 4): Severity.MEDIUM,
    (3, 3, 1): Severity.MEDIUM,
    (3, 3, 2): Severity.MEDIUM,
    (3, 3, 3): Severity.HIGH,
    (3, 3, 4): Severity.HIGH,
    (3, 4, 1): Severity.MEDIUM,
    (3, 4, 2): Severity.MEDIUM,
    (3, 4, 3): Severity.HIGH,
    (3, 4, 4): Severity.CRITICAL,
    (4, 1, 1): Severity.LOW,
    (4, 1, 2): Severity.MEDIUM,
    (4, 1, 3): Severity.MEDIUM,
    (4, 1, 4): Severity.HIGH,
    (4, 2, 1): Severity.MEDIUM,
    (4, 2, 2): Severity.MEDIUM,
    (4, 2, 3): Severity.MEDIUM,
    (4, 2, 4): Severity.HIGH,
    (4, 3, 1): Severity.MEDIUM,
    (4, 3, 2): Severity.MEDIUM,
    (4, 3, 3): Severity.HIGH,
    (4, 3, 4): Severity.CRITICAL,
    (4, 4, 1): Severity.HIGH,
    (4, 4, 2): Severity.HIGH,
    (4, 4, 3): Severity.CRITICAL,
    (4, 4, 4): Severity.CRITICAL,
}


def composite_for(likelihood: int, impact: int, exposure: int) -> Severity:
    return COMPOSITE_TABLE[(likelihood, impact, exposure)]
