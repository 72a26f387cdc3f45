from fastapi import APIRouter

from history_tracker.api.directory import customers_router, operators_router
from history_tracker.api.referent_histories import customer_referent_router, operator_referent_router
from history_tracker.api.sector_histories import operator_sector_router, sector_members_router

api_router = APIRouter()
api_router.include_router(operator_sector_router)
api_router.include_router(sector_members_router)
api_router.include_router(operator_referent_router)
api_router.include_router(customer_referent_router)
api_router.include_router(operators_router)
api_router.include_router(customers_router)
