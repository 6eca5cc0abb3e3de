from .service import (
    JoinOutcome,
    JoinState,
    LocationsLookup,
    LocationsResponse,
    fetch_locations,
    parse_location_list,
)

__all__ = [
    "JoinOutcome",
    "JoinState",
    "LocationsLookup",
    "LocationsResponse",
    "fetch_locations",
    "parse_location_list",
]
