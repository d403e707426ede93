"""
Supabase client construction and query execution.

This module contains *only* connection setup. There is no module-level client:
the application builds one client at start-up with `create_supabase_client()`
and every repository function receives it as its first argument, so tests can
pass a fake.
"""

from __future__ import annotations

from typing import Any

from postgrest.exceptions import APIError

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, ClientOptions, create_client  # type: ignore[import-not-found]

from config.settings import Settings


class StoreError(RuntimeError):
    """The store rejected or failed a query."""


def create_supabase_client(settings: Settings) -> Client:
    """Create a service-role client with bounded timeouts on every call."""

    timeout = int(settings.supabase_timeout_seconds)
    options = ClientOptions(
        postgrest_client_timeout=timeout,
        function_client_timeout=timeout,
        auto_refresh_token=False,
        persist_session=False,
    )
    return create_client(settings.supabase_url, settings.supabase_key, options=options)


def execute(query: Any, action: str) -> Any:
    """
    Run a query builder and return its response.

    Raises:
        StoreError: the query failed; the message names `action`
    """

    try:
        response = query.execute()
    except APIError as e:
        raise StoreError(f"Failed to {action}: {e.message}") from e

    error = getattr(response, "error", None)
    if error:
        raise StoreError(f"Failed to {action}: {error}")
    return response


def rows_of(response: Any) -> list[dict[str, Any]]:
    return list(getattr(response, "data", None) or [])
