"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from servicebay.api.requests import router as requests_router
from servicebay.api.automations import router as automations_router
from servicebay.api.technicians import router as technicians_router
from servicebay.api.parts import router as parts_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(automations_router)
api_router.include_router(technicians_router)
api_router.include_router(parts_router)
