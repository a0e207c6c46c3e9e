from __future__ import annotations

from fastapi import APIRouter, Depends

from lettersynth.api.deps import get_container
from lettersynth.core.container import AppContainer
from lettersynth.models.command import CommandRequest, CommandResult

router = APIRouter(prefix="/commands", tags=["commands"])


@router.post("", response_model=CommandResult)
async def run_command(
    request: CommandRequest,
    container: AppContainer = Depends(get_container),
) -> CommandResult:
    return container.command_service.process_line(request.line)
