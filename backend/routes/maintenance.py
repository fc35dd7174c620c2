from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from backend.application import MaintenanceService

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def get_maintenance_service(request: Request) -> MaintenanceService:
    return request.app.state.maintenance_service


@router.get("/login/{employee_id}")
async def login(employee_id: str, service: MaintenanceService = Depends(get_maintenance_service)) -> dict:
    """Look up an employee's login record."""
    record = await service.login(employee_id)
    return record.to_json()


@router.get("/plant-mapping/{engineer_id}")
async def plant_mapping(engineer_id: str, service: MaintenanceService = Depends(get_maintenance_service)) -> dict:
    """List the plants assigned to a maintenance engineer."""
    result = await service.plant_mapping(engineer_id)
    return result.to_json()


@router.get("/notifications/{plant_id}")
async def notifications(plant_id: str, service: MaintenanceService = Depends(get_maintenance_service)) -> dict:
    result = await service.notifications(plant_id)
    return result.to_json()


@router.get("/pm-details/{engineer_id}")
async def pm_details(engineer_id: str, service: MaintenanceService = Depends(get_maintenance_service)) -> dict:
    result = await service.pm_details(engineer_id)
    return result.to_json()


@router.get("/work-orders/{plant_id}")
async def work_orders(plant_id: str, service: MaintenanceService = Depends(get_maintenance_service)) -> dict:
    result = await service.work_orders(plant_id)
    return result.to_json()
