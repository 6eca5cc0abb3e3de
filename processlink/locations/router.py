from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from processlink.client.redirects import RedirectFetcher
from processlink.config import settings
from processlink.credentials.service import ConfigNodeStore, config_store
from processlink.errors import ConfigurationError
from processlink.locations.service import fetch_locations

router = APIRouter()


def get_config_store() -> ConfigNodeStore:
    return config_store


async def get_redirect_fetcher() -> AsyncIterator[RedirectFetcher]:
    """One client per lookup; redirects are handled by the fetcher, not httpx."""
    # httpx's own 5 s default would cut requests short of the configured deadline
    async with httpx.AsyncClient(
        follow_redirects=False, timeout=settings.request_timeout
    ) as client:
        yield RedirectFetcher(
            client,
            allowed_hosts=settings.allowed_hosts,
            max_redirects=settings.MAX_REDIRECTS,
            timeout=settings.request_timeout,
        )


@router.get("/locations/{config_id}")
async def get_locations(
    config_id: str,
    store: ConfigNodeStore = Depends(get_config_store),
    fetcher: RedirectFetcher = Depends(get_redirect_fetcher),
):
    """Areas and folders for a config node, used by the editor's location pickers."""
    config_node = store.get(config_id)
    try:
        result = await fetch_locations(
            config_node,
            fetcher,
            host=settings.FILES_HOST,
            timeout=settings.locations_timeout,
        )
    except ConfigurationError as e:
        status_code = 404 if config_node is None else 400
        return JSONResponse(status_code=status_code, content={"error": str(e)})
    return JSONResponse(status_code=result.status_code, content=result.body)
