"""
Time tracking service using Tortoise ORM directly.

Every query is scoped to the owning user. Creating clients and projects is
subject to the limits of the user's subscription plan.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from ..billing.plans import get_plan_limits, plan_from_profile
from ..database.tortoise_schemas import (
    ClientCreate,
    ClientResponse,
    ProjectCreate,
    ProjectResponse,
    TimeEntryCreate,
    TimeEntryResponse,
    TimerStart,
    TimerStop,
)
from ..errors import NotFoundError, PlanLimitError, ValidationError
from ..logging import get_logger
from ..models.tortoise_models import Client, Profile, Project, TimeEntry
from .onboarding import mark_step

logger = get_logger(__name__)


async def get_user_plan(user_id: UUID) -> str:
    profile = await Profile.get_or_none(user_id=user_id)
    if profile is None:
        return "free"
    return plan_from_profile(
        profile.stripe_subscription_status, profile.stripe_price_id
    )


class TrackingService:
    """Clients, projects and time entries of one user."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id

    async def _check_limit(self, kind: str, active_count: int) -> None:
        plan = await get_user_plan(self.user_id)
        limit = getattr(get_plan_limits(plan), kind)
        if limit is not None and active_count >= limit:
            raise PlanLimitError(
                f"Your {plan} plan allows {limit} active {kind}. "
                "Upgrade to add more.",
                {"plan": plan, "limit": limit, "resource": kind},
            )

    # Clients

    async def create_client(self, data: ClientCreate) -> ClientResponse:
        active = await Client.filter(user_id=self.user_id, archived=False).count()
        await self._check_limit("clients", active)

        client = await Client.create(user_id=self.user_id, name=data.name)
        logger.info("Client created", client_id=str(client.id))
        return ClientResponse.model_validate(client)

    async def list_clients(
        self, include_archived: bool = False
    ) -> List[ClientResponse]:
        queryset = Client.filter(user_id=self.user_id)
        if not include_archived:
            queryset = queryset.filter(archived=False)
        clients = await queryset.order_by("name")
        return [ClientResponse.model_validate(client) for client in clients]

    async def archive_client(self, client_id: UUID) -> ClientResponse:
        client = await Client.get_or_none(id=client_id, user_id=self.user_id)
        if client is None:
            raise NotFoundError("Client not found", {"client_id": str(client_id)})
        client.archived = True
        await client.save(update_fields=["archived"])
        return ClientResponse.model_validate(client)

    # Projects

    async def create_project(self, data: ProjectCreate) -> ProjectResponse:
        active = await Project.filter(user_id=self.user_id, archived=False).count()
        await self._check_limit("projects", active)

        if data.client_id is not None and not await Client.exists(
            id=data.client_id, user_id=self.user_id
        ):
            raise NotFoundError("Client not found", {"client_id": str(data.client_id)})

        project = await Project.create(
            user_id=self.user_id,
            client_id=data.client_id,
            name=data.name,
            rate_hour=data.rate_hour,
        )
        await mark_step(self.user_id, "project_created")
        logger.info("Project created", project_id=str(project.id))
        return ProjectResponse.model_validate(project)

    async def list_projects(
        self, include_archived: bool = False, client_id: Optional[UUID] = None
    ) -> List[ProjectResponse]:
        queryset = Project.filter(user_id=self.user_id)
        if not include_archived:
            queryset = queryset.filter(archived=False)
        if client_id is not None:
            queryset = queryset.filter(client_id=client_id)
        projects = await queryset.order_by("name")
        return [ProjectResponse.model_validate(project) for project in projects]

    async def archive_project(self, project_id: UUID) -> ProjectResponse:
        project = await self._get_project(project_id)
        project.archived = True
        await project.save(update_fields=["archived"])
        return ProjectResponse.model_validate(project)

    async def _get_project(self, project_id: UUID) -> Project:
        project = await Project.get_or_none(id=project_id, user_id=self.user_id)
        if project is None:
            raise NotFoundError("Project not found", {"project_id": str(project_id)})
        return project

    # Time entries

    async def create_entry(self, data: TimeEntryCreate) -> TimeEntryResponse:
        await self._get_project(data.project_id)
        entry = await TimeEntry.create(
            user_id=self.user_id,
            project_id=data.project_id,
            started_at=data.started_at,
            stopped_at=data.stopped_at,
            notes=data.notes,
            tags=data.tags,
        )
        return TimeEntryResponse.model_validate(entry)

    async def get_running(self) -> Optional[TimeEntryResponse]:
        entry = await TimeEntry.get_or_none(
            user_id=self.user_id, stopped_at__isnull=True
        )
        return TimeEntryResponse.model_validate(entry) if entry else None

    async def start_timer(self, data: TimerStart) -> TimeEntryResponse:
        """
        Start a timer on a project.

        Raises:
            ValidationError: If a timer is already running
        """
        await self._get_project(data.project_id)
        if await TimeEntry.exists(user_id=self.user_id, stopped_at__isnull=True):
            raise ValidationError("A timer is already running")

        entry = await TimeEntry.create(
            user_id=self.user_id,
            project_id=data.project_id,
            started_at=datetime.now(timezone.utc),
            notes=data.notes,
            tags=data.tags,
        )
        await mark_step(self.user_id, "timer_started")
        logger.info("Timer started", entry_id=str(entry.id))
        return TimeEntryResponse.model_validate(entry)

    async def stop_timer(self, data: TimerStop) -> TimeEntryResponse:
        """
        Stop the running timer, optionally replacing its notes.

        Raises:
            NotFoundError: If no timer is running
        """
        entry = await TimeEntry.get_or_none(
            user_id=self.user_id, stopped_at__isnull=True
        )
        if entry is None:
            raise NotFoundError("No running timer")

        entry.stopped_at = datetime.now(timezone.utc)
        if data.notes is not None:
            entry.notes = data.notes
        await entry.save(update_fields=["stopped_at", "notes"])

        if entry.notes and entry.notes.strip():
            await mark_step(self.user_id, "timer_stopped_with_note")
        logger.info("Timer stopped", entry_id=str(entry.id))
        return TimeEntryResponse.model_validate(entry)

    async def delete_entry(self, entry_id: UUID) -> None:
        deleted = await TimeEntry.filter(id=entry_id, user_id=self.user_id).delete()
        if not deleted:
            raise NotFoundError("Time entry not found", {"entry_id": str(entry_id)})
