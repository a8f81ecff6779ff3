"""
Panel API - suppression, authorization and lighting control

REST endpoints standing in for the physical panel controls:
- Suppression status, reserves, audit log, actuator override
- Two-factor authorization for arm/power changes
- Emergency lighting test / power / simulated mains signal
- Time advance and notification history
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from ..domain.enums import ActuatorKind, GateError, ResourceKind
from ..domain.models import CommandResult, LightingStatus, SuppressionSystemState
from ..services.notifications import MemoryChannel
from ..services.panel import FirePanel


suppression_router = APIRouter(prefix="/suppression", tags=["suppression"])
auth_router = APIRouter(prefix="/auth", tags=["authorization"])
lighting_router = APIRouter(prefix="/lighting", tags=["lighting"])
panel_router = APIRouter(prefix="/panel", tags=["panel"])


# =============================================================================
# Request Models
# =============================================================================

class ToggleRequest(BaseModel):
    target: bool = Field(..., description="Requested armed / power state")


class FireRequest(BaseModel):
    actuator: ActuatorKind


class PrimaryRequest(BaseModel):
    secret: str = Field(..., min_length=1, description="Admin password")


class SecondaryRequest(BaseModel):
    code: str = Field(..., min_length=1, description="One-time password")


class CompleteAuthorizationRequest(BaseModel):
    primary: str = Field(..., min_length=1)
    secondary: str = Field(..., min_length=1)


class MainsRequest(BaseModel):
    lost: bool


class FaultRequest(BaseModel):
    reason: str = ""


class ConnectivityRequest(BaseModel):
    online: bool


class TickRequest(BaseModel):
    elapsed_sec: float = Field(..., ge=0, le=86400)


# =============================================================================
# Global State (set by create_app)
# =============================================================================

_global_panel: Optional[FirePanel] = None


def set_panel(panel: Optional[FirePanel]):
    global _global_panel
    _global_panel = panel


def get_panel() -> FirePanel:
    if _global_panel is None:
        raise HTTPException(status_code=500, detail="Panel not initialized")
    return _global_panel


_AUTH_FAILURES = (GateError.INVALID_PRIMARY, GateError.INVALID_SECONDARY)
_BAD_REQUESTS = (GateError.NO_SESSION, GateError.WRONG_STAGE)


def _respond(result: CommandResult) -> dict:
    """Return result as JSON or raise with the mapped status code.

    401 = wrong credential, 400 = protocol misuse, 409 = policy refusal.
    """
    if result.success:
        return result.to_dict()

    if result.error in _AUTH_FAILURES:
        status_code = 401
    elif result.error in _BAD_REQUESTS:
        status_code = 400
    else:
        status_code = 409

    raise HTTPException(
        status_code=status_code,
        detail={"error": result.error.value, "detail": result.reason},
    )


# =============================================================================
# Suppression
# =============================================================================

@suppression_router.get("/status", response_model=SuppressionSystemState)
async def get_suppression_status():
    return get_panel().suppression_status()


@suppression_router.get("/reserves")
async def get_reserves():
    return [r.model_dump(mode="json") for r in get_panel().reserve_levels()]


@suppression_router.get("/audit")
async def get_audit_log(
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Newest N entries"),
):
    return [entry.to_dict() for entry in get_panel().audit_log(limit)]


@suppression_router.post("/arm")
async def request_arm_toggle(request: ToggleRequest):
    """Start authorization to arm or disarm the system."""
    return _respond(get_panel().request_arm_toggle(request.target))


@suppression_router.post("/power")
async def request_power_toggle(request: ToggleRequest):
    """Start authorization to cut or restore non-essential power."""
    return _respond(get_panel().request_power_toggle(request.target))


@suppression_router.post("/fire")
async def fire_actuator(request: FireRequest):
    """Manual actuator override. Cuts non-essential power on success."""
    return _respond(get_panel().fire_actuator(request.actuator))


@suppression_router.post("/reserves/{kind}/refill")
async def refill_reserve(kind: ResourceKind):
    return _respond(get_panel().refill_reserve(kind))


# =============================================================================
# Authorization
# =============================================================================

@auth_router.get("/status")
async def get_authorization_status():
    return get_panel().authorization_status().model_dump(mode="json")


@auth_router.post("/primary")
async def submit_primary(request: PrimaryRequest):
    return _respond(get_panel().submit_primary(request.secret))


@auth_router.post("/secondary")
async def submit_secondary(request: SecondaryRequest):
    return _respond(get_panel().submit_secondary(request.code))


@auth_router.post("/complete")
async def complete_authorization(request: CompleteAuthorizationRequest):
    return _respond(get_panel().complete_authorization(request.primary, request.secondary))


@auth_router.post("/cancel")
async def cancel_authorization():
    return _respond(get_panel().cancel_authorization())


# =============================================================================
# Lighting
# =============================================================================

@lighting_router.get("/status", response_model=LightingStatus)
async def get_lighting_status():
    return get_panel().lighting_status()


@lighting_router.post("/test")
async def start_test():
    return _respond(get_panel().start_test())


@lighting_router.post("/test/abort")
async def abort_test():
    return _respond(get_panel().abort_test())


@lighting_router.post("/power-on")
async def power_on_lights():
    return _respond(get_panel().power_on_lights())


@lighting_router.post("/power-off")
async def power_off_lights():
    return _respond(get_panel().power_off_lights())


@lighting_router.post("/mains")
async def set_mains_lost(request: MainsRequest):
    """Simulated building mains signal."""
    return _respond(get_panel().set_mains_lost(request.lost))


@lighting_router.post("/fault")
async def report_fault(request: FaultRequest):
    return _respond(get_panel().report_fault(request.reason))


@lighting_router.post("/fault/clear")
async def clear_fault():
    return _respond(get_panel().clear_fault())


@lighting_router.post("/connectivity")
async def set_connectivity(request: ConnectivityRequest):
    return _respond(get_panel().set_connectivity(request.online))


# =============================================================================
# Panel
# =============================================================================

@panel_router.get("/status")
async def get_panel_status():
    return get_panel().get_status()


@panel_router.post("/tick")
async def tick(request: TickRequest):
    """Advance simulated time."""
    panel = get_panel()
    fired = panel.tick(request.elapsed_sec)
    return {
        "timers_fired": fired,
        "clock": panel.clock.now().isoformat(),
        "lighting": panel.lighting_status().model_dump(mode="json"),
    }


@panel_router.get("/notifications")
async def get_notifications(limit: int = Query(50, ge=1, le=1000)):
    """Recent notifications, newest first."""
    panel = get_panel()
    history = [
        channel for channel in panel.notifications.channels.values()
        if isinstance(channel, MemoryChannel)
    ]
    if not history:
        return []
    items = history[0].notifications[-limit:]
    return [n.to_dict() for n in reversed(items)]


@panel_router.get("/notifications/channels")
async def get_notification_channels():
    return get_panel().notifications.get_status()
