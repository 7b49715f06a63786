"""
Subscription plans, their Stripe prices and the usage limits they grant.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from ..config import StripeConfig, get_config


class Plan(str, Enum):
    FREE = "free"
    SOLO = "solo"
    TEAM = "team"
    TEAM_YEARLY = "team_yearly"


class PlanInfo(BaseModel):
    """Catalog entry shown on the pricing page."""

    id: Plan
    name: str
    price: str
    interval: Optional[str] = None
    price_id: Optional[str] = None
    features: List[str]
    popular: bool = False


class PlanLimits(BaseModel):
    """Usage limits; ``None`` means unlimited."""

    clients: Optional[int]
    projects: Optional[int]
    seats: Optional[int]


PLAN_LIMITS: Dict[str, PlanLimits] = {
    "free": PlanLimits(clients=1, projects=1, seats=1),
    "solo": PlanLimits(clients=None, projects=None, seats=1),
    "team": PlanLimits(clients=None, projects=None, seats=None),
}

ACTIVE_STATUSES = ("active", "trialing")


def get_plans(config: Optional[StripeConfig] = None) -> Dict[Plan, PlanInfo]:
    """Build the plan catalog with price ids from configuration."""
    config = config or get_config().stripe
    return {
        Plan.FREE: PlanInfo(
            id=Plan.FREE,
            name="Free",
            price="$0",
            features=["1 client", "1 project", "Basic tracking"],
        ),
        Plan.SOLO: PlanInfo(
            id=Plan.SOLO,
            name="Solo",
            price="$9",
            interval="month",
            price_id=config.price_solo,
            features=[
                "Unlimited time tracking",
                "Projects & clients",
                "Basic reports",
                "CSV export",
            ],
        ),
        Plan.TEAM: PlanInfo(
            id=Plan.TEAM,
            name="Team",
            price="$19",
            interval="month",
            price_id=config.price_team,
            features=[
                "Everything in Solo",
                "Team collaboration",
                "Advanced reports",
                "PDF invoices",
                "Priority support",
            ],
            popular=True,
        ),
        Plan.TEAM_YEARLY: PlanInfo(
            id=Plan.TEAM_YEARLY,
            name="Team Yearly",
            price="$190",
            interval="year",
            price_id=config.price_team_yearly,
            features=[
                "Everything in Team",
                "2 months free",
                "Priority support",
                "Early access to features",
            ],
        ),
    }


def plan_from_price_id(price_id: Optional[str]) -> str:
    if price_id and ("_TEAM_" in price_id or "team" in price_id):
        return "team"
    return "solo"


def plan_from_profile(status: Optional[str], price_id: Optional[str]) -> str:
    """
    Effective plan of a subscriber.

    Only active and trialing subscriptions count; the team tier is recognised
    from the price id.
    """
    if (status or "").lower() in ACTIVE_STATUSES:
        return plan_from_price_id(price_id)
    return "free"


def get_plan_limits(plan: str) -> PlanLimits:
    return PLAN_LIMITS.get(plan, PLAN_LIMITS["free"])
