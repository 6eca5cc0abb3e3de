import pytest
import pytest_asyncio

from helpers import make_fetcher
from processlink.credentials.models import ProcessLinkConfig
from processlink.credentials.service import config_store


@pytest.fixture
def server() -> ProcessLinkConfig:
    return ProcessLinkConfig(id="cfg-1", name="Plant", siteId="42", apiKey="pl_test_key")


@pytest.fixture(autouse=True)
def clean_config_store():
    config_store.clear()
    yield config_store
    config_store.clear()


@pytest_asyncio.fixture
async def fetcher_factory():
    """make_fetcher whose clients are closed when the test ends."""
    fetchers = []

    def factory(handler, **kwargs):
        fetcher = make_fetcher(handler, **kwargs)
        fetchers.append(fetcher)
        return fetcher

    yield factory
    for fetcher in fetchers:
        await fetcher.client.aclose()
