from __future__ import annotations

from fastapi import APIRouter, Depends

from lettersynth.api.deps import get_container, http_error
from lettersynth.core.container import AppContainer
from lettersynth.core.errors import LetterSynthError
from lettersynth.models.binding import BindingDescription, BindRequest, ParamUpdateRequest

router = APIRouter(prefix="/bindings", tags=["bindings"])


@router.get("", response_model=list[BindingDescription])
async def list_bindings(container: AppContainer = Depends(get_container)) -> list[BindingDescription]:
    return container.registry.describe_all()


@router.get("/{letter}", response_model=BindingDescription)
async def get_binding(letter: str, container: AppContainer = Depends(get_container)) -> BindingDescription:
    try:
        return container.registry.describe(letter.lower())
    except LetterSynthError as exc:
        raise http_error(exc, lookup=True) from exc


@router.put("/{letter}", response_model=BindingDescription)
async def bind_letter(
    letter: str,
    request: BindRequest,
    container: AppContainer = Depends(get_container),
) -> BindingDescription:
    letter = letter.lower()
    try:
        container.registry.bind(letter, request.type_name, request.params, request.overrides)
    except LetterSynthError as exc:
        raise http_error(exc) from exc
    return container.registry.describe(letter)


@router.patch("/{letter}", response_model=BindingDescription)
async def update_binding(
    letter: str,
    request: ParamUpdateRequest,
    container: AppContainer = Depends(get_container),
) -> BindingDescription:
    letter = letter.lower()
    try:
        container.registry.update(letter, request.params)
    except LetterSynthError as exc:
        raise http_error(exc, lookup=True) from exc
    return container.registry.describe(letter)
