"""
Locations lookup: areas and folders fetched in parallel.

Both branches are started back-to-back on the running loop. The lookup
produces exactly one response, from whichever happens first:

- both branches completed           -> 200 {"areas": [...], "folders": [...]}
- a branch hit a transport failure  -> 500 {"error": "Failed to fetch <branch>"}
- the overall deadline elapsed      -> 504 {"error": "Request timed out"}

A branch that gets a non-200 status or an unparseable body resolves to an
empty list and does not fail the lookup.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from processlink.client.redirects import RedirectFetcher, RequestDescriptor
from processlink.credentials.models import ProcessLinkConfig
from processlink.errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

BRANCHES = ("areas", "folders")
DEFAULT_FILES_HOST = "files.processlink.com.au"
DEFAULT_OVERALL_TIMEOUT = 15.0


class JoinState(str, Enum):
    PENDING = "pending"
    SETTLING = "settling"
    DONE = "done"


class JoinOutcome(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


@dataclass
class LocationsResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


def parse_location_list(branch: str, response: httpx.Response) -> List[Any]:
    """Interpret a branch response; anything but a 200 JSON list becomes []."""
    label = branch.capitalize()
    if response.status_code != 200:
        logger.warning(f"{label} API returned {response.status_code}: {response.text}")
        return []

    try:
        data = json.loads(response.text)
    except ValueError as e:
        logger.warning(f"{label} API parse error: {e}")
        return []

    if not isinstance(data, list):
        logger.warning(f"{label} API returned non-array: {data!r}")
        return []
    return data


class LocationsLookup:
    """
    Join of the areas and folders requests for one config node.

    All terminal paths go through _emit(), which only acts while the join is
    PENDING, so the response is produced at most once.
    """

    def __init__(
        self,
        fetcher: RedirectFetcher,
        site_id: str,
        api_key: str,
        host: str = DEFAULT_FILES_HOST,
        timeout: float = DEFAULT_OVERALL_TIMEOUT,
    ):
        self.fetcher = fetcher
        self.site_id = site_id
        self.host = host
        self.timeout = timeout
        self.headers = {"Authorization": f"Bearer {api_key}"}

        self.state = JoinState.PENDING
        self.outcome: Optional[JoinOutcome] = None
        self.results: Dict[str, Optional[List[Any]]] = {name: None for name in BRANCHES}
        self.completed = 0
        self.responses_sent = 0

        self._future: Optional[asyncio.Future] = None
        self._tasks: List[asyncio.Task] = []
        self._timer: Optional[asyncio.TimerHandle] = None

    def descriptor(self, branch: str) -> RequestDescriptor:
        return RequestDescriptor(
            host=self.host,
            path=f"/api/sites/{self.site_id}/{branch}",
            method="GET",
            headers=self.headers,
        )

    async def run(self) -> LocationsResponse:
        loop = asyncio.get_running_loop()
        self._future = loop.create_future()
        self._timer = loop.call_later(self.timeout, self.on_timeout)
        self._tasks = [
            asyncio.create_task(self._run_branch(name), name=f"locations-{name}")
            for name in BRANCHES
        ]
        try:
            return await self._future
        finally:
            self._cancel_pending()

    async def _run_branch(self, branch: str) -> None:
        try:
            response = await self.fetcher.fetch(self.descriptor(branch))
        except TransportError as e:
            logger.warning(f"{branch.capitalize()} request error: {e}")
            self.fail_branch(branch, e)
            return
        except Exception as e:
            logger.error(f"{branch.capitalize()} request failed unexpectedly: {e}", exc_info=True)
            self.fail_branch(branch, e)
            return
        self.complete_branch(branch, parse_location_list(branch, response))

    def complete_branch(self, branch: str, data: List[Any]) -> None:
        if self.state is not JoinState.PENDING:
            return
        self.results[branch] = data
        self.completed += 1
        self._try_finalize()

    def fail_branch(self, branch: str, error: BaseException) -> None:
        if self.state is not JoinState.PENDING:
            return
        self._emit(
            JoinOutcome.ERROR,
            LocationsResponse(500, {"error": f"Failed to fetch {branch}"}),
        )

    def on_timeout(self) -> None:
        if self.state is not JoinState.PENDING:
            return
        logger.warning("Overall timeout reached for locations request")
        self._emit(JoinOutcome.TIMEOUT, LocationsResponse(504, {"error": "Request timed out"}))

    def _try_finalize(self) -> None:
        if self.completed < len(BRANCHES):
            return
        self._emit(
            JoinOutcome.SUCCESS,
            LocationsResponse(
                200,
                {"areas": self.results["areas"], "folders": self.results["folders"]},
            ),
        )

    def _emit(self, outcome: JoinOutcome, response: LocationsResponse) -> None:
        if self.state is not JoinState.PENDING:
            return
        self.state = JoinState.SETTLING
        self.outcome = outcome
        if self._timer is not None:
            self._timer.cancel()
        if self._future is not None and not self._future.done():
            self._future.set_result(response)
        self.responses_sent += 1
        self.state = JoinState.DONE

    def _cancel_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()


async def fetch_locations(
    config_node: Optional[ProcessLinkConfig],
    fetcher: RedirectFetcher,
    host: str = DEFAULT_FILES_HOST,
    timeout: float = DEFAULT_OVERALL_TIMEOUT,
) -> LocationsResponse:
    """
    Look up the areas and folders visible to a config node.

    Raises:
        ConfigurationError: If the config node is missing, or lacks a site id
            or API key; no request is made in that case
    """
    if config_node is None:
        raise ConfigurationError("Config node not found")
    if not config_node.is_ready:
        raise ConfigurationError("Config not ready")

    lookup = LocationsLookup(
        fetcher,
        site_id=config_node.site_id,
        api_key=config_node.api_key_value,
        host=host,
        timeout=timeout,
    )
    return await lookup.run()
