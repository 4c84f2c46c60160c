from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from patchgraph.app.api.deps import get_container
from patchgraph.app.core.container import AppContainer
from patchgraph.app.core.errors import DuplicateInput, MalformedGraph, PatchGraphError
from patchgraph.app.models.compile import (
    MappingSummary,
    PdCompileRequest,
    PdCompileResponse,
    RackCompileRequest,
    RackCompileResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/compile", tags=["compile"])


def _http_error(error: PatchGraphError) -> HTTPException:
    if isinstance(error, DuplicateInput):
        status_code = 409
    elif isinstance(error, MalformedGraph):
        logger.error("Compilation produced a malformed graph: %s", error.message)
        status_code = 500
    else:
        status_code = 422
    return HTTPException(status_code=status_code, detail=error.to_detail())


@router.post("/pd", response_model=PdCompileResponse)
async def compile_pd(
    request: PdCompileRequest,
    container: AppContainer = Depends(get_container),
) -> PdCompileResponse:
    try:
        artifact = container.compiler_service.compile_pd(request)
    except PatchGraphError as error:
        raise _http_error(error) from error

    return PdCompileResponse(
        rack=artifact.rack,
        units=artifact.units,
        controller=artifact.controller,
        mappings=[
            MappingSummary(
                control=mapping.control.name,
                cc=mapping.control.cc,
                unit=mapping.unit_id,
                parameter=mapping.parameter.name,
                bus=mapping.bus_name,
            )
            for mapping in artifact.mappings
        ],
        node_offsets=artifact.node_offsets,
        k2_config=artifact.k2_config,
    )


@router.post("/rack", response_model=RackCompileResponse)
async def compile_rack(
    request: RackCompileRequest,
    container: AppContainer = Depends(get_container),
) -> RackCompileResponse:
    try:
        artifact = container.compiler_service.compile_rack(request)
    except PatchGraphError as error:
        raise _http_error(error) from error
    return RackCompileResponse(document=artifact.document, text=artifact.text)
