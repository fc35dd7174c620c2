"""Domain layer definitions."""

from .odata import EndpointMessages, ODataEntry

__all__ = [
    "EndpointMessages",
    "ODataEntry",
]
