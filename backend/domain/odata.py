"""Domain records decoded from SAP OData Atom payloads."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ODataEntry:
    """Properties of a single Atom ``entry`` keyed by SAP field name.

    A value of ``None`` marks a property flagged ``m:null="true"``; properties
    that were not sent at all are simply missing from the mapping.
    """

    properties: dict[str, str | None] = field(default_factory=dict)

    def get(self, name: str) -> str | None:
        return self.properties.get(name)


@dataclass(frozen=True, slots=True)
class EndpointMessages:
    """Error messages reported to callers of one relay endpoint."""

    request_failed: str
    parse_failed: str = "Failed to parse XML"
    unexpected_structure: str = "Unexpected SAP feed structure"
