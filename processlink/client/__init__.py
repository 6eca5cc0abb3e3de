from .redirects import (
    RedirectFetcher,
    RequestDescriptor,
    is_absolute_location,
    is_allowed_host,
    is_allowed_redirect,
)

__all__ = [
    "RedirectFetcher",
    "RequestDescriptor",
    "is_absolute_location",
    "is_allowed_host",
    "is_allowed_redirect",
]
