# app/api/admin.py
from fastapi import APIRouter, Depends, Query

from app.api.deps import Principal, get_control_plane, require_admin
from app.core.logger import get_logger
from app.domain.client import ClientProfile
from app.domain.container import ContainerStatus
from app.schemas.client import (
    ActivityResponse,
    ClientListResponse,
    ClientProfileRequest,
    ClientResponse,
    StatsData,
    StatsResponse,
)
from app.schemas.container import (
    ActionData,
    ActionResponse,
    ContainerListResponse,
    ContainerResponse,
    RefreshResponse,
)
from app.services.context import ControlPlane

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ---------------------------
# Clients
# ---------------------------
@router.get("/clients", response_model=ClientListResponse)
async def list_clients(
    refresh: bool = Query(True, description="Query the runtime before answering"),
    principal: Principal = Depends(require_admin),
    plane: ControlPlane = Depends(get_control_plane),
):
    if refresh:
        await plane.registry.refresh()
    views = await plane.clients.list_clients(plane.registry.snapshot())

    logger.info(f"Admin {principal.email} retrieved clients list")
    return ClientListResponse(data=[ClientResponse.from_view(v) for v in views])


@router.put("/clients/{client_id}", response_model=ClientResponse)
async def save_client_profile(
    client_id: str,
    payload: ClientProfileRequest,
    principal: Principal = Depends(require_admin),
    plane: ControlPlane = Depends(get_control_plane),
):
    profile = ClientProfile(id=client_id, **payload.model_dump())
    await plane.clients.save_profile(profile)
    plane.activity.record(principal.email, "client_updated", client_id, payload.model_dump())

    snapshot = plane.registry.snapshot()
    used = len(snapshot.containers_matching(tenant_id=client_id))
    quota = profile.container_quota
    if quota is None:
        quota = plane.clients.quotas.quota_for(client_id)
    return ClientResponse(
        id=client_id,
        name=profile.name or client_id,
        email=profile.email,
        is_active=profile.is_active,
        container_quota=quota,
        used_containers=used,
    )


# ---------------------------
# Containers
# ---------------------------
@router.get("/containers", response_model=ContainerListResponse)
async def list_containers(
    refresh: bool = Query(True, description="Query the runtime before answering"),
    client_id: str | None = Query(None, description="Only containers of this tenant"),
    service_type: str | None = Query(None, description="Only containers of this service type"),
    principal: Principal = Depends(require_admin),
    plane: ControlPlane = Depends(get_control_plane),
):
    if refresh:
        await plane.registry.refresh()
    containers = plane.registry.list_containers(tenant_id=client_id, service_type=service_type)

    logger.info(f"Admin {principal.email} retrieved all containers")
    return ContainerListResponse(data=[ContainerResponse.from_domain(c) for c in containers])


@router.post("/containers/{container_id}/{action}", response_model=ActionResponse)
async def container_action(
    container_id: str,
    action: str,
    principal: Principal = Depends(require_admin),
    plane: ControlPlane = Depends(get_control_plane),
):
    outcome = await plane.dispatcher.dispatch(container_id, action, actor=principal.email)

    logger.info(f"Admin {principal.email} performed {outcome.action} on container {container_id}")
    return ActionResponse(
        message=outcome.message,
        data=ActionData(container_id=outcome.container_id, action=outcome.action),
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_snapshot(plane: ControlPlane = Depends(get_control_plane)):
    containers = await plane.registry.refresh()
    return RefreshResponse(generation=plane.registry.snapshot().generation, containers=len(containers))


# ---------------------------
# Platform statistics
# ---------------------------
@router.get("/stats", response_model=StatsResponse)
async def platform_stats(
    recent: int = Query(10, ge=0, le=100, description="Number of recent activities"),
    principal: Principal = Depends(require_admin),
    plane: ControlPlane = Depends(get_control_plane),
):
    # one snapshot for every figure
    snapshot = plane.registry.snapshot()
    views = await plane.clients.list_clients(snapshot)
    activities = await plane.activity.recent(recent) if recent else []

    statuses = [c.status for c in snapshot.containers]
    logger.info(f"Admin {principal.email} retrieved platform stats")
    return StatsResponse(data=StatsData(
        total_clients=len(views),
        active_clients=sum(1 for v in views if v.is_active),
        total_containers=len(statuses),
        running_containers=statuses.count(ContainerStatus.RUNNING),
        stopped_containers=statuses.count(ContainerStatus.EXITED),
        generation=snapshot.generation,
        recent_activity=[
            ActivityResponse(
                id=a.id,
                action=a.action,
                resource=a.resource,
                user_id=a.actor,
                timestamp=a.created_at,
                details=a.details,
            )
            for a in activities
        ],
    ))
