"""Shared HTTP session with retry/backoff for the Report Store."""

from __future__ import annotations

from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


def create_session(
    api_key: str = "",
    retries: int = 3,
    backoff_factor: float = 0.5,
    status_forcelist: tuple[int, ...] = (429, 500, 502, 503, 504),
) -> Session:
    """Create a requests Session with exponential backoff retry.

    When *api_key* is given, the PostgREST ``apikey`` and bearer
    ``Authorization`` headers are attached to every request.
    Retries only on GET requests and only for the listed status codes.
    """
    retry = Retry(
        total=retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session = Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    if api_key:
        session.headers.update(
            {"apikey": api_key, "Authorization": f"Bearer {api_key}"}
        )
    return session
