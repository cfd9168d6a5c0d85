"""APIRouter that answers with and without a trailing slash."""

from typing import Any, Callable

from fastapi import APIRouter
from fastapi.types import DecoratedCallable


class TrailingSlashRouter(APIRouter):
    """Serve ``/contacts`` and ``/contacts/`` from the same endpoint.

    The app runs with ``redirect_slashes=False``, so both spellings are
    registered explicitly. Only the bare path is published in OpenAPI.
    """

    def api_route(
        self, path: str, *, include_in_schema: bool = True, **kwargs: Any
    ) -> Callable[[DecoratedCallable], DecoratedCallable]:
        """Register ``path`` and its slash-terminated twin."""
        bare = path.rstrip("/")
        register_bare = super().api_route(bare, include_in_schema=include_in_schema, **kwargs)
        register_slashed = super().api_route(f"{bare}/", include_in_schema=False, **kwargs)

        def decorator(func: DecoratedCallable) -> DecoratedCallable:
            register_slashed(func)
            return register_bare(func)

        return decorator
