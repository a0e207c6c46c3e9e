from __future__ import annotations

from fastapi import HTTPException, Request

from lettersynth.core.container import AppContainer
from lettersynth.core.errors import LetterSynthError, UnboundLetter, UnknownType


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def http_error(exc: LetterSynthError, *, lookup: bool = False) -> HTTPException:
    """Map a domain error to 404 for failed lookups, 422 otherwise."""
    status_code = 404 if lookup and isinstance(exc, (UnknownType, UnboundLetter)) else 422
    return HTTPException(status_code=status_code, detail={"error": exc.kind, "message": exc.message})
