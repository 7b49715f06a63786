"""Application services for tracking, expenses, onboarding and the waitlist."""

from .expenses import ExpenseService, calculate_amounts
from .onboarding import OnboardingState, get_state, mark_step, update_state
from .tracking import TrackingService, get_user_plan
from .waitlist import WaitlistService

__all__ = [
    "ExpenseService",
    "OnboardingState",
    "TrackingService",
    "WaitlistService",
    "calculate_amounts",
    "get_state",
    "get_user_plan",
    "mark_step",
    "update_state",
]
