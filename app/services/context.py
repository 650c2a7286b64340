from dataclasses import dataclass

from app.core.config import Settings
from app.domain.ports import ActivityRepository, ClientProfileRepository, ContainerRuntime
from app.services.activity import ActivityRecorder
from app.services.attribution import NamingConventionAttribution
from app.services.client_service import ClientService
from app.services.dispatcher import ActionDispatcher
from app.services.events import InMemoryEventBus
from app.services.quota import SettingsQuotaProvider
from app.services.registry import ContainerRegistry


@dataclass
class ControlPlane:
    """Every long-lived component of one running app, wired together once."""
    settings: Settings
    runtime: ContainerRuntime
    registry: ContainerRegistry
    dispatcher: ActionDispatcher
    clients: ClientService
    activity: ActivityRecorder
    events: InMemoryEventBus


def build_control_plane(
    settings: Settings,
    runtime: ContainerRuntime,
    activity_repo: ActivityRepository,
    profile_repo: ClientProfileRepository,
) -> ControlPlane:
    events = InMemoryEventBus()
    quotas = SettingsQuotaProvider(settings)
    activity = ActivityRecorder(activity_repo)
    registry = ContainerRegistry(runtime, NamingConventionAttribution(), quotas, events)
    dispatcher = ActionDispatcher(
        runtime,
        registry=registry,
        publisher=events,
        activity=activity,
        refresh_after_action=settings.REFRESH_AFTER_ACTION,
    )
    return ControlPlane(
        settings=settings,
        runtime=runtime,
        registry=registry,
        dispatcher=dispatcher,
        clients=ClientService(profile_repo, quotas),
        activity=activity,
        events=events,
    )
