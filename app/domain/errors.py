import asyncio
from typing import Optional


class ControlPlaneError(Exception):
    """Base class for every error the admin plane surfaces."""


class RuntimeUnavailable(ControlPlaneError):
    """The container runtime could not be reached. Transient, safe to retry."""

    def __init__(self, message: str = "Container runtime is unavailable"):
        super().__init__(message)
        self.message = message


class RuntimeActionError(ControlPlaneError):
    """
    The runtime rejected a lifecycle command.

    in_flight is set when the command was abandoned on timeout but is still
    executing against the daemon; it resolves once Docker is done with it.
    """

    def __init__(self, action: str, container_id: str, reason: str, in_flight: Optional[asyncio.Future] = None):
        self.action = action
        self.container_id = container_id
        self.reason = reason
        self.in_flight = in_flight
        super().__init__(f"Failed to {action} container {container_id}: {reason}")

    @property
    def message(self) -> str:
        return str(self)


class InvalidAction(ControlPlaneError):
    def __init__(self, action: str):
        self.action = action
        self.message = f"Invalid action: {action}"
        super().__init__(self.message)


class ActionInProgress(ControlPlaneError):
    def __init__(self, container_id: str, pending: str):
        self.container_id = container_id
        self.pending = pending
        self.message = f"Container {container_id} already has a pending {pending} action"
        super().__init__(self.message)


class AttributionAmbiguous(ControlPlaneError):
    """A container name does not follow <tenant>-<serviceType>-<suffix>. Never leaves attribution."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot attribute container name {name!r} to a tenant")
