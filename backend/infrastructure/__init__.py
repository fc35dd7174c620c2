"""Infrastructure layer exports."""

from .sap import SAPODataClient, SAPRequestError

__all__ = [
    "SAPODataClient",
    "SAPRequestError",
]
