from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RelayModel(BaseModel):
    """Base model serialising to the camelCase keys the maintenance app expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class LoginRecord(RelayModel):
    employee_id: str
    password: str


class PlantAssignment(RelayModel):
    maint_engineer: str | None = None
    plant_id: str | None = None


class Notification(RelayModel):
    notification_no: str | None = None
    date: str | None = None
    type: str | None = None
    description: str | None = None
    priority: str = "N/A"


class PMDetail(RelayModel):
    plant: str | None = None
    name: str | None = None
    city: str | None = None
    region: str | None = None
    country: str | None = None
    engineer_id: str | None = None


class WorkOrder(RelayModel):
    order_number: str | None = None
    description: str | None = None
    order_type: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    equipment_number: str = ""
    cost_center: str | None = None
    plant: str | None = None
    company_code: str | None = None
    short_text: str | None = None
    long_text: str | None = None


class PlantMappingResponse(RelayModel):
    engineer_id: str
    plants: list[PlantAssignment] = Field(default_factory=list)


class NotificationsResponse(RelayModel):
    plant_id: str
    notifications: list[Notification] = Field(default_factory=list)


class PMDetailsResponse(RelayModel):
    engineer_id: str
    pm_details: list[PMDetail] = Field(default_factory=list)


class WorkOrdersResponse(RelayModel):
    plant_id: str
    work_orders: list[WorkOrder] = Field(default_factory=list)


class ErrorBody(RelayModel):
    error: str
    details: str | None = None
