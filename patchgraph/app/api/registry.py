from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from patchgraph.app.api.deps import get_container
from patchgraph.app.core.container import AppContainer
from patchgraph.app.core.errors import UnknownEntry
from patchgraph.app.models.registry import RegistryEntry

router = APIRouter(prefix="/registry", tags=["registry"])


@router.get("/namespaces")
async def list_namespaces(container: AppContainer = Depends(get_container)) -> list[str]:
    return container.registry.list_namespaces()


@router.get("/{namespace}", response_model=list[RegistryEntry])
async def list_entries(namespace: str, container: AppContainer = Depends(get_container)) -> list[RegistryEntry]:
    try:
        return container.registry.list_entries(namespace)
    except UnknownEntry as error:
        raise HTTPException(status_code=404, detail=error.to_detail()) from error


@router.get("/{namespace}/{name}", response_model=RegistryEntry)
async def get_entry(namespace: str, name: str, container: AppContainer = Depends(get_container)) -> RegistryEntry:
    try:
        return container.resolver.resolve_module(namespace, name)
    except UnknownEntry as error:
        raise HTTPException(status_code=404, detail=error.to_detail()) from error
