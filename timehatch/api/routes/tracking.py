"""
Tracking endpoints: clients, projects, time entries and the running timer.
"""

from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ...core.database.tortoise_schemas import (
    ClientCreate,
    ClientResponse,
    ProjectCreate,
    ProjectResponse,
    TimeEntryCreate,
    TimeEntryResponse,
    TimerStart,
    TimerStop,
)
from ...core.services import TrackingService
from ..dependencies import get_tracking_service

router = APIRouter(tags=["tracking"])


@router.post(
    "/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED
)
async def create_client(
    data: ClientCreate, service: TrackingService = Depends(get_tracking_service)
) -> ClientResponse:
    """Create a client. The free plan allows a single active client."""
    return await service.create_client(data)


@router.get("/clients", response_model=List[ClientResponse])
async def list_clients(
    include_archived: bool = False,
    service: TrackingService = Depends(get_tracking_service),
) -> List[ClientResponse]:
    return await service.list_clients(include_archived)


@router.post("/clients/{client_id}/archive", response_model=ClientResponse)
async def archive_client(
    client_id: UUID, service: TrackingService = Depends(get_tracking_service)
) -> ClientResponse:
    return await service.archive_client(client_id)


@router.post(
    "/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED
)
async def create_project(
    data: ProjectCreate, service: TrackingService = Depends(get_tracking_service)
) -> ProjectResponse:
    """Create a project. The free plan allows a single active project."""
    return await service.create_project(data)


@router.get("/projects", response_model=List[ProjectResponse])
async def list_projects(
    include_archived: bool = False,
    client_id: Optional[UUID] = None,
    service: TrackingService = Depends(get_tracking_service),
) -> List[ProjectResponse]:
    return await service.list_projects(include_archived, client_id)


@router.post("/projects/{project_id}/archive", response_model=ProjectResponse)
async def archive_project(
    project_id: UUID, service: TrackingService = Depends(get_tracking_service)
) -> ProjectResponse:
    return await service.archive_project(project_id)


@router.post(
    "/time-entries",
    response_model=TimeEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_time_entry(
    data: TimeEntryCreate, service: TrackingService = Depends(get_tracking_service)
) -> TimeEntryResponse:
    """Record a completed interval manually."""
    return await service.create_entry(data)


@router.delete("/time-entries/{entry_id}")
async def delete_time_entry(
    entry_id: UUID, service: TrackingService = Depends(get_tracking_service)
) -> Dict[str, str]:
    await service.delete_entry(entry_id)
    return {"message": "Time entry deleted successfully"}


@router.get("/timer", response_model=Optional[TimeEntryResponse])
async def get_running_timer(
    service: TrackingService = Depends(get_tracking_service),
) -> Optional[TimeEntryResponse]:
    return await service.get_running()


@router.post(
    "/timer/start",
    response_model=TimeEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_timer(
    data: TimerStart, service: TrackingService = Depends(get_tracking_service)
) -> TimeEntryResponse:
    """Start a timer. Only one timer may run at a time."""
    return await service.start_timer(data)


@router.post("/timer/stop", response_model=TimeEntryResponse)
async def stop_timer(
    data: TimerStop, service: TrackingService = Depends(get_tracking_service)
) -> TimeEntryResponse:
    return await service.stop_timer(data)
