"""
Tortoise ORM models for TimeHatch.

Simple, clean models with Django-like syntax. Tracking data (clients,
projects, time entries) belongs to a user through foreign keys. Security
tables store the owning user id directly so they survive account cleanup
for auditing.
"""

from uuid import uuid4

from tortoise import fields
from tortoise.models import Model


class Profile(Model):
    """Per-user settings, onboarding progress and subscription state."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user: fields.OneToOneRelation = fields.OneToOneField(
        "models.User", related_name="profile", on_delete=fields.CASCADE
    )
    company_name = fields.CharField(max_length=255, null=True)
    onboarding_state = fields.JSONField(null=True)

    # Stripe subscription mirror, written by the webhook and session sync
    stripe_customer_id = fields.CharField(max_length=255, null=True, db_index=True)
    stripe_subscription_id = fields.CharField(
        max_length=255, null=True, db_index=True
    )
    stripe_subscription_status = fields.CharField(max_length=50, null=True)
    stripe_price_id = fields.CharField(max_length=255, null=True)
    stripe_current_period_end = fields.DatetimeField(null=True)
    stripe_seat_quantity = fields.IntField(null=True)
    stripe_cancel_at_period_end = fields.BooleanField(default=False)
    stripe_canceled_at = fields.DatetimeField(null=True)
    subscription_plan = fields.CharField(max_length=50, default="free")

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Meta class for Profile model."""

        table = "profiles"

    def __str__(self) -> str:
        """Return string representation of Profile."""
        return f"Profile({self.user_id})"


class Client(Model):
    """A customer whose projects are billed."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user: fields.ForeignKeyRelation = fields.ForeignKeyField(
        "models.User", related_name="clients", on_delete=fields.CASCADE
    )
    name = fields.CharField(max_length=255)
    archived = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    projects: fields.ReverseRelation["Project"]

    class Meta:
        """Meta class for Client model."""

        table = "clients"

    def __str__(self) -> str:
        """Return string representation of Client."""
        return f"Client({self.name})"


class Project(Model):
    """A unit of work with an optional hourly rate."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user: fields.ForeignKeyRelation = fields.ForeignKeyField(
        "models.User", related_name="projects", on_delete=fields.CASCADE
    )
    client: fields.ForeignKeyNullableRelation[Client] = fields.ForeignKeyField(
        "models.Client",
        related_name="projects",
        null=True,
        on_delete=fields.SET_NULL,
    )
    name = fields.CharField(max_length=255)
    archived = fields.BooleanField(default=False)
    rate_hour = fields.DecimalField(max_digits=10, decimal_places=2, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    time_entries: fields.ReverseRelation["TimeEntry"]

    class Meta:
        """Meta class for Project model."""

        table = "projects"

    def __str__(self) -> str:
        """Return string representation of Project."""
        return f"Project({self.name})"


class TimeEntry(Model):
    """A tracked interval. Running timers have no stop time."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user: fields.ForeignKeyRelation = fields.ForeignKeyField(
        "models.User", related_name="time_entries", on_delete=fields.CASCADE
    )
    project: fields.ForeignKeyRelation[Project] = fields.ForeignKeyField(
        "models.Project", related_name="time_entries", on_delete=fields.CASCADE
    )
    started_at = fields.DatetimeField(db_index=True)
    stopped_at = fields.DatetimeField(null=True)
    notes = fields.TextField(null=True)
    tags = fields.JSONField(default=list)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Meta class for TimeEntry model."""

        table = "time_entries"
        ordering = ["-started_at"]

    def __str__(self) -> str:
        """Return string representation of TimeEntry."""
        return f"TimeEntry({self.started_at})"


class Expense(Model):
    """
    A cost booked on a project.

    Money is stored in integer minor units. Net, VAT and gross amounts are
    derived from quantity, unit amount and VAT rate on every write.
    """

    id = fields.UUIDField(pk=True, default=uuid4)
    user: fields.ForeignKeyRelation = fields.ForeignKeyField(
        "models.User", related_name="expenses", on_delete=fields.CASCADE
    )
    project: fields.ForeignKeyRelation[Project] = fields.ForeignKeyField(
        "models.Project", related_name="expenses", on_delete=fields.CASCADE
    )
    # Copied from the project for reporting
    client: fields.ForeignKeyNullableRelation[Client] = fields.ForeignKeyField(
        "models.Client",
        related_name="expenses",
        null=True,
        on_delete=fields.SET_NULL,
    )
    spent_on = fields.DateField(db_index=True)
    vendor = fields.CharField(max_length=255, null=True)
    category = fields.CharField(max_length=100, null=True)
    description = fields.TextField(null=True)
    quantity = fields.DecimalField(max_digits=12, decimal_places=3, default=1)
    unit_amount_cents = fields.IntField(default=0)
    currency = fields.CharField(max_length=3, default="CHF")
    vat_rate = fields.DecimalField(max_digits=5, decimal_places=2, default=0)
    net_amount_cents = fields.IntField(default=0)
    vat_amount_cents = fields.IntField(default=0)
    gross_amount_cents = fields.IntField(default=0)
    billable = fields.BooleanField(default=True)
    reimbursable = fields.BooleanField(default=False)
    receipt_url = fields.CharField(max_length=1024, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        """Meta class for Expense model."""

        table = "expenses"
        ordering = ["-spent_on"]

    def __str__(self) -> str:
        """Return string representation of Expense."""
        return f"Expense({self.spent_on}, {self.gross_amount_cents} {self.currency})"


class Lead(Model):
    """Waitlist signup."""

    id = fields.UUIDField(pk=True, default=uuid4)
    email = fields.CharField(max_length=255, unique=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Meta class for Lead model."""

        table = "leads"

    def __str__(self) -> str:
        """Return string representation of Lead."""
        return f"Lead({self.email})"


class WaitlistRateLimit(Model):
    """Signup attempts per client IP within the current window."""

    id = fields.UUIDField(pk=True, default=uuid4)
    ip_address = fields.CharField(max_length=64, unique=True)
    email = fields.CharField(max_length=255, null=True, db_index=True)
    attempts = fields.IntField(default=1)
    window_start = fields.DatetimeField()

    class Meta:
        """Meta class for WaitlistRateLimit model."""

        table = "waitlist_rate_limits"


class TrustedDevice(Model):
    """Device remembered through the signed `td` cookie."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user_id = fields.UUIDField(db_index=True)
    device_id = fields.CharField(max_length=32)
    ua_hash = fields.CharField(max_length=64)
    ip_prefix = fields.CharField(max_length=64)
    created_at = fields.DatetimeField(auto_now_add=True)
    expires_at = fields.DatetimeField()
    revoked_at = fields.DatetimeField(null=True)
    last_seen_at = fields.DatetimeField(null=True)

    class Meta:
        """Meta class for TrustedDevice model."""

        table = "trusted_devices"
        unique_together = (("user_id", "device_id"),)

    def __str__(self) -> str:
        """Return string representation of TrustedDevice."""
        return f"TrustedDevice({self.device_id})"


class MfaTrustedDevice(Model):
    """Device remembered through its user agent and IP fingerprint."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user_id = fields.UUIDField(db_index=True)
    device_hash = fields.CharField(max_length=64)
    device_name = fields.CharField(max_length=255, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    expires_at = fields.DatetimeField()
    last_used_at = fields.DatetimeField(null=True)

    class Meta:
        """Meta class for MfaTrustedDevice model."""

        table = "mfa_trusted_devices"
        unique_together = (("user_id", "device_hash"),)


class MfaFactor(Model):
    """TOTP authenticator enrolled by a user."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user_id = fields.UUIDField(db_index=True)
    friendly_name = fields.CharField(max_length=100, default="Authenticator")
    secret = fields.CharField(max_length=64)
    verified = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Meta class for MfaFactor model."""

        table = "mfa_factors"


class MfaRecoveryCode(Model):
    """Hashed single-use recovery code."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user_id = fields.UUIDField(db_index=True)
    code_hash = fields.CharField(max_length=64)
    used = fields.BooleanField(default=False)
    used_at = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        """Meta class for MfaRecoveryCode model."""

        table = "mfa_recovery_codes"


class MfaRateLimit(Model):
    """Verification attempts per user within the current window."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user_id = fields.UUIDField(unique=True)
    attempts = fields.IntField(default=1)
    window_start = fields.DatetimeField()

    class Meta:
        """Meta class for MfaRateLimit model."""

        table = "mfa_rate_limits"


class AuditLog(Model):
    """Security audit trail entry."""

    id = fields.UUIDField(pk=True, default=uuid4)
    user_id = fields.UUIDField(null=True, db_index=True)
    event_type = fields.CharField(max_length=64, db_index=True)
    details = fields.JSONField(null=True)
    ip_address = fields.CharField(max_length=64, null=True)
    user_agent = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True, db_index=True)

    class Meta:
        """Meta class for AuditLog model."""

        table = "audit_logs"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        """Return string representation of AuditLog."""
        return f"AuditLog({self.event_type})"
