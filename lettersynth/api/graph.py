from __future__ import annotations

from fastapi import APIRouter, Depends

from lettersynth.api.deps import get_container, http_error
from lettersynth.core.container import AppContainer
from lettersynth.core.errors import LetterSynthError
from lettersynth.models.graph import GraphSnapshot, NotationRequest

router = APIRouter(prefix="/graph", tags=["graph"])


@router.get("", response_model=GraphSnapshot)
async def get_graph(container: AppContainer = Depends(get_container)) -> GraphSnapshot:
    return container.command_service.snapshot()


@router.put("/notation", response_model=GraphSnapshot)
async def save_notation(
    request: NotationRequest,
    container: AppContainer = Depends(get_container),
) -> GraphSnapshot:
    container.command_service.set_notation(request.notation.lower())
    return container.command_service.snapshot()


@router.post("/play", response_model=GraphSnapshot)
async def play(container: AppContainer = Depends(get_container)) -> GraphSnapshot:
    try:
        container.command_service.play()
    except LetterSynthError as exc:
        raise http_error(exc) from exc
    return container.command_service.snapshot()


@router.post("/pause", response_model=GraphSnapshot)
async def pause(container: AppContainer = Depends(get_container)) -> GraphSnapshot:
    container.command_service.pause()
    return container.command_service.snapshot()
