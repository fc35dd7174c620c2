"""Use cases behind the ``/api/maintenance`` routes.

Each method performs one upstream call, decodes the Atom payload and maps the
SAP properties onto the response models. Failures are converted into
:class:`RelayError` instances carrying the message reported for that route.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from lxml import etree

from backend.core.odata import ODataParseError, UnexpectedStructureError, date_only, parse_xml, read_entry, read_feed
from backend.core.schema import (
    LoginRecord,
    Notification,
    NotificationsResponse,
    PlantAssignment,
    PlantMappingResponse,
    PMDetail,
    PMDetailsResponse,
    WorkOrder,
    WorkOrdersResponse,
)
from backend.domain import EndpointMessages, ODataEntry
from backend.errors import RelayError
from backend.infrastructure import SAPODataClient, SAPRequestError

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOGIN_MESSAGES = EndpointMessages(
    request_failed="SAP login request failed",
    parse_failed="Failed to parse XML response",
    unexpected_structure="Unexpected SAP response structure",
)
PLANT_MAPPING_MESSAGES = EndpointMessages(request_failed="SAP plant mapping request failed")
NOTIFICATIONS_MESSAGES = EndpointMessages(
    request_failed="SAP notifications request failed",
    unexpected_structure="Unexpected SAP notifications structure",
)
PM_DETAILS_MESSAGES = EndpointMessages(
    request_failed="SAP PM details request failed",
    unexpected_structure="Unexpected SAP PM details structure",
)
WORK_ORDERS_MESSAGES = EndpointMessages(
    request_failed="SAP work orders request failed",
    unexpected_structure="Unexpected SAP work orders structure",
)


def _to_login(entry: ODataEntry) -> LoginRecord:
    """Echo the EmployeeId SAP returned, not the path parameter that was queried."""
    employee_id = entry.get("EmployeeId")
    password = entry.get("Password")
    if employee_id is None or password is None:
        raise UnexpectedStructureError("login entry lacks EmployeeId or Password")
    return LoginRecord(employee_id=employee_id, password=password)


def _to_plant(entry: ODataEntry) -> PlantAssignment:
    return PlantAssignment(maint_engineer=entry.get("MaintEngineer"), plant_id=entry.get("PlantId"))


def _to_notification(entry: ODataEntry) -> Notification:
    return Notification(
        notification_no=entry.get("Qmnum"),
        date=date_only(entry.get("Qmdat")),
        type=entry.get("Qmart"),
        description=entry.get("Qmtxt"),
        priority=entry.get("Priokx") or "N/A",
    )


def _to_pm_detail(entry: ODataEntry) -> PMDetail:
    return PMDetail(
        plant=entry.get("Plant"),
        name=entry.get("Name1"),
        city=entry.get("Ort01"),
        region=entry.get("Regio"),
        country=entry.get("Land1"),
        engineer_id=entry.get("MaintEngineer"),
    )


def _to_work_order(entry: ODataEntry) -> WorkOrder:
    return WorkOrder(
        order_number=entry.get("Aufnr"),
        description=entry.get("Ktext"),
        order_type=entry.get("Auart"),
        start_date=date_only(entry.get("Gstrs")),
        end_date=date_only(entry.get("Gltrs")),
        equipment_number=entry.get("Equnr") or "",
        cost_center=entry.get("Kostl"),
        plant=entry.get("Werks"),
        company_code=entry.get("Bukrs"),
        short_text=entry.get("Txt04"),
        long_text=entry.get("Txt30"),
    )


class MaintenanceService:
    """Relay maintenance queries to SAP and reshape the answers."""

    def __init__(self, client: SAPODataClient) -> None:
        self._client = client

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _load(self, fetch: Callable[[], Awaitable[bytes]], messages: EndpointMessages) -> etree._Element:
        try:
            payload = await fetch()
        except SAPRequestError as exc:
            raise RelayError(messages.request_failed, details=str(exc)) from exc
        try:
            return parse_xml(payload)
        except ODataParseError as exc:
            logger.warning("%s: %s", messages.parse_failed, exc)
            raise RelayError(messages.parse_failed) from exc

    @staticmethod
    def _decode(decode: Callable[[], T], messages: EndpointMessages) -> T:
        try:
            return decode()
        except UnexpectedStructureError as exc:
            logger.warning("%s: %s", messages.unexpected_structure, exc)
            raise RelayError(messages.unexpected_structure) from exc

    async def _load_feed(
        self,
        fetch: Callable[[], Awaitable[bytes]],
        mapper: Callable[[ODataEntry], T],
        messages: EndpointMessages,
    ) -> list[T]:
        root = await self._load(fetch, messages)
        return self._decode(lambda: [mapper(entry) for entry in read_feed(root)], messages)

    # ------------------------------------------------------------------
    # use cases
    # ------------------------------------------------------------------
    async def login(self, employee_id: str) -> LoginRecord:
        root = await self._load(lambda: self._client.fetch_employee(employee_id), LOGIN_MESSAGES)
        return self._decode(lambda: _to_login(read_entry(root)), LOGIN_MESSAGES)

    async def plant_mapping(self, engineer_id: str) -> PlantMappingResponse:
        plants = await self._load_feed(
            lambda: self._client.fetch_plant_mapping(engineer_id), _to_plant, PLANT_MAPPING_MESSAGES
        )
        return PlantMappingResponse(engineer_id=engineer_id, plants=plants)

    async def notifications(self, plant_id: str) -> NotificationsResponse:
        notifications = await self._load_feed(
            lambda: self._client.fetch_notifications(plant_id), _to_notification, NOTIFICATIONS_MESSAGES
        )
        return NotificationsResponse(plant_id=plant_id, notifications=notifications)

    async def pm_details(self, engineer_id: str) -> PMDetailsResponse:
        details = await self._load_feed(
            lambda: self._client.fetch_pm_details(engineer_id), _to_pm_detail, PM_DETAILS_MESSAGES
        )
        return PMDetailsResponse(engineer_id=engineer_id, pm_details=details)

    async def work_orders(self, plant_id: str) -> WorkOrdersResponse:
        orders = await self._load_feed(
            lambda: self._client.fetch_work_orders(plant_id), _to_work_order, WORK_ORDERS_MESSAGES
        )
        return WorkOrdersResponse(plant_id=plant_id, work_orders=orders)
