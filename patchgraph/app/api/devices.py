from __future__ import annotations

from fastapi import APIRouter, Depends

from patchgraph.app.api.deps import get_container
from patchgraph.app.core.container import AppContainer
from patchgraph.app.models.controller import DeviceProfile

router = APIRouter(prefix="/devices", tags=["devices"])


@router.get("", response_model=list[DeviceProfile])
async def list_devices(container: AppContainer = Depends(get_container)) -> list[DeviceProfile]:
    return container.device_service.list_devices()
