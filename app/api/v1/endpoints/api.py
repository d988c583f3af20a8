from fastapi import APIRouter
from app.api.v1.endpoints import shipments, warehouse_capacity

api_router = APIRouter()

# Registering specialized controllers
api_router.include_router(shipments.router, prefix="/shipments", tags=["Logistics"])
api_router.include_router(warehouse_capacity.router, prefix="/warehouse-capacity", tags=["Warehouse Capacity"])
