"""
Subscription plans and their per-resource quotas.

The LimitPolicy is immutable configuration handed to the services that need
it; DEFAULT_LIMIT_POLICY holds the production plan table.
"""

from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .resources import ResourceKind


class Plan(str, Enum):
    """Subscription plans."""
    free = "free"
    starter = "starter"
    standard = "standard"
    pro = "pro"


class PlanLimits(BaseModel):
    """Quotas of one plan."""

    model_config = ConfigDict(frozen=True)

    shows: int
    boards: int
    packing_boxes: int
    collaborators_per_show: int
    props: int
    archived_shows: int

    def for_kind(self, kind: ResourceKind) -> int:
        """Quota that applies to a resource kind."""
        return {
            ResourceKind.SHOW: self.shows,
            ResourceKind.BOARD: self.boards,
            ResourceKind.PACKING_BOX: self.packing_boxes,
            ResourceKind.PROP: self.props,
            ResourceKind.INVITATION: self.collaborators_per_show,
        }[kind]


class LimitPolicy(BaseModel):
    """
    Plan table plus exemption rules.

    A tenant is exempt from every quota when its profile carries the admin
    predicate or its subscription status is one of `exempt_statuses`.
    """

    model_config = ConfigDict(frozen=True)

    plans: Mapping[Plan, PlanLimits]
    default_plan: Plan = Plan.free
    exempt_statuses: FrozenSet[str] = Field(
        default_factory=lambda: frozenset({"active", "trialing"})
    )

    @field_validator("plans", mode="after")
    @classmethod
    def _read_only_plans(cls, plans: Mapping[Plan, PlanLimits]) -> Mapping[Plan, PlanLimits]:
        return MappingProxyType(dict(plans))

    def limits_for(self, plan_name: str) -> PlanLimits:
        """Limits for a plan name; unknown or missing names get the default plan."""
        try:
            plan = Plan(plan_name)
        except ValueError:
            plan = self.default_plan
        return self.plans.get(plan, self.plans[self.default_plan])

    def is_exempt_status(self, subscription_status: str) -> bool:
        return subscription_status in self.exempt_statuses


_DEFAULT_PLANS: Dict[Plan, PlanLimits] = {
    Plan.free: PlanLimits(
        shows=1, boards=2, packing_boxes=20,
        collaborators_per_show=3, props=10, archived_shows=0,
    ),
    Plan.starter: PlanLimits(
        shows=3, boards=5, packing_boxes=200,
        collaborators_per_show=5, props=50, archived_shows=2,
    ),
    Plan.standard: PlanLimits(
        shows=10, boards=20, packing_boxes=1000,
        collaborators_per_show=15, props=100, archived_shows=5,
    ),
    Plan.pro: PlanLimits(
        shows=100, boards=200, packing_boxes=10000,
        collaborators_per_show=100, props=1000, archived_shows=10,
    ),
}

DEFAULT_LIMIT_POLICY = LimitPolicy(plans=_DEFAULT_PLANS)
