from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from lettersynth.api.deps import get_container, http_error
from lettersynth.core.container import AppContainer
from lettersynth.core.errors import UnknownType
from lettersynth.models.unit import UnitInfo, UnitKind

router = APIRouter(prefix="/units", tags=["units"])


@router.get("", response_model=list[UnitInfo])
async def list_units(
    kind: UnitKind | None = Query(default=None),
    container: AppContainer = Depends(get_container),
) -> list[UnitInfo]:
    return [descriptor.info() for descriptor in container.catalog.list_units(kind)]


@router.get("/{type_name}", response_model=UnitInfo)
async def get_unit(type_name: str, container: AppContainer = Depends(get_container)) -> UnitInfo:
    try:
        return container.catalog.lookup(type_name).info()
    except UnknownType as exc:
        raise http_error(exc, lookup=True) from exc
