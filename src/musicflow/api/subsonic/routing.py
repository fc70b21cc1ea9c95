"""Route registration for Subsonic endpoints."""

from collections.abc import Callable
from typing import Any, TypeVar

from fastapi import APIRouter

F = TypeVar("F", bound=Callable[..., Any])


def subsonic_endpoint(router: APIRouter, name: str) -> Callable[[F], F]:
    """Register ``name`` and ``name.view`` for GET and POST.

    Older clients append ``.view`` to every method name.
    """

    def decorator(func: F) -> F:
        router.add_api_route(f"/{name}", func, methods=["GET", "POST"], name=name)
        router.add_api_route(
            f"/{name}.view",
            func,
            methods=["GET", "POST"],
            name=f"{name}.view",
            include_in_schema=False,
        )
        return func

    return decorator
