"""Failure classification shared by the HTTP source adapters."""

from typing import Any, Dict, Optional

import httpx

from ...domain.models.verification import ErrorKind


class ProviderError(Exception):
    """A provider call failed with a classified error kind."""

    def __init__(self, error_kind: ErrorKind, message: str):
        super().__init__(message)
        self.error_kind = error_kind
        self.message = message


def classify_status(
    status_code: int,
    not_found: ErrorKind = ErrorKind.UPSTREAM_ERROR,
    forbidden: ErrorKind = ErrorKind.ACCESS_DENIED,
) -> ErrorKind:
    """Map an HTTP error status to an error kind."""
    if status_code == 404:
        return not_found
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code in (401, 403):
        return forbidden
    return ErrorKind.UPSTREAM_ERROR


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    not_found: ErrorKind = ErrorKind.UPSTREAM_ERROR,
    forbidden: ErrorKind = ErrorKind.ACCESS_DENIED,
) -> Any:
    """GET ``url`` once and decode the JSON body.

    No retry is attempted; every failure becomes a ``ProviderError``.

    Raises:
        ProviderError: On HTTP errors, transport failures or non-JSON bodies
    """
    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise ProviderError(
            classify_status(status, not_found=not_found, forbidden=forbidden),
            f"HTTP {status} from {e.request.url}",
        )
    except httpx.TimeoutException:
        raise ProviderError(ErrorKind.NETWORK_ERROR, f"Request to {url} timed out")
    except httpx.RequestError as e:
        raise ProviderError(ErrorKind.NETWORK_ERROR, str(e) or type(e).__name__)

    try:
        return response.json()
    except ValueError:
        raise ProviderError(ErrorKind.INVALID_RESPONSE, "Response is not valid JSON")
