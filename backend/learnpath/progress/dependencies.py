from typing import Annotated

from fastapi import Depends, Request

from learnpath.progress.registry import EngineRegistry
from learnpath.progress.service import ProgressEngine


def get_registry(request: Request) -> EngineRegistry:
    """Get the engine registry attached to the app at startup."""
    return request.app.state.registry


Registry = Annotated[EngineRegistry, Depends(get_registry)]


async def get_engine(user_id: str, registry: Registry) -> ProgressEngine:
    """Resolve the engine for the ``user_id`` path parameter."""
    return await registry.get(user_id)


Engine = Annotated[ProgressEngine, Depends(get_engine)]
