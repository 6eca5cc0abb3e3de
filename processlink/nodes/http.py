import json
from typing import Any, Dict, List

import httpx

from processlink.errors import RequestTimeoutError, TransportError


async def post(url: str, timeout: float, **kwargs: Any) -> httpx.Response:
    """
    POST to a Process Link endpoint.

    Raises:
        RequestTimeoutError: The request did not complete within `timeout`
        TransportError: Connection or DNS failure
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=False) as client:
            return await client.post(url, **kwargs)
    except httpx.TimeoutException as e:
        raise RequestTimeoutError("Request timed out") from e
    except httpx.HTTPError as e:
        raise TransportError(str(e) or e.__class__.__name__) from e


def parse_body(response: httpx.Response) -> Dict[str, Any]:
    """JSON object bodies are returned as-is, anything else as {"raw": text}."""
    try:
        data = json.loads(response.text)
    except ValueError:
        return {"raw": response.text}
    return data if isinstance(data, dict) else {"raw": response.text}


def error_message(parsed: Dict[str, Any], status_code: int) -> str:
    return parsed.get("error") or parsed.get("message") or f"HTTP {status_code}"


def config_errors(config: Dict[str, Any]) -> List[str]:
    """Checks shared by every node's validate()."""
    errors = []

    if not config.get("server"):
        errors.append("A Process Link config node is required")

    api_url = config.get("apiUrl")
    if api_url and not str(api_url).startswith(("http://", "https://")):
        errors.append("'apiUrl' must be an http(s) URL")

    timeout = config.get("timeout")
    if timeout not in (None, ""):
        try:
            if int(timeout) <= 0:
                errors.append("'timeout' must be a positive number of milliseconds")
        except (TypeError, ValueError):
            errors.append("'timeout' must be a number of milliseconds")

    return errors
