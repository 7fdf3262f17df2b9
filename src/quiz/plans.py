"""
Plan Catalogue.

Subscription plans in display order. The first three map one-to-one onto
the recommendable tiers (Monthly, Bi-monthly, Quarterly at indices 0, 1, 2).
The one-off kit can be chosen but is never recommended.
"""

from dataclasses import dataclass
from enum import IntEnum

from .errors import UnknownPlanError


class PlanTier(IntEnum):
    """Testing frequency, ordered by intensity."""
    QUARTERLY = 1
    BIMONTHLY = 2
    MONTHLY = 3

    @classmethod
    def clamp(cls, value: int) -> "PlanTier":
        return cls(max(cls.QUARTERLY, min(cls.MONTHLY, value)))


@dataclass(frozen=True)
class Plan:
    name: str
    frequency: str
    cycle_lookup_key: str
    annual_lookup_key: str | None = None
    tier: PlanTier | None = None

    @property
    def recommendable(self) -> bool:
        return self.tier is not None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "frequency": self.frequency,
            "cycle_lookup_key": self.cycle_lookup_key,
            "annual_lookup_key": self.annual_lookup_key,
            "tier": int(self.tier) if self.tier is not None else None,
        }


PLANS: tuple[Plan, ...] = (
    Plan(
        name="Proactive",
        frequency="Monthly kit",
        cycle_lookup_key="proactive-monthly",
        annual_lookup_key="proactive-annual",
        tier=PlanTier.MONTHLY,
    ),
    Plan(
        name="Balanced",
        frequency="Bi-monthly kit",
        cycle_lookup_key="balanced-bimonthly",
        annual_lookup_key="balanced-annual",
        tier=PlanTier.BIMONTHLY,
    ),
    Plan(
        name="Essential",
        frequency="Quarterly kit",
        cycle_lookup_key="essential-quarterly",
        annual_lookup_key="essential-annual",
        tier=PlanTier.QUARTERLY,
    ),
    Plan(
        name="One-Off",
        frequency="Single kit",
        cycle_lookup_key="1pack",
    ),
)


def plan_index(tier: PlanTier) -> int:
    """Zero-based index into PLANS for a tier (Monthly=0 .. Quarterly=2)."""
    return PlanTier.MONTHLY - tier


def plan_for_tier(tier: PlanTier) -> Plan:
    return PLANS[plan_index(tier)]


def get_plan(name: str) -> Plan:
    """Case-insensitive lookup by plan name."""
    wanted = name.strip().lower()
    for plan in PLANS:
        if plan.name.lower() == wanted:
            return plan
    raise UnknownPlanError(f"Unknown plan: {name}")
