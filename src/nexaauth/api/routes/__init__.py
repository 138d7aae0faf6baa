from fastapi import APIRouter

from .health import router as health_router
from .registration import router as registration_router
from .registration import test_router
from .users import router as users_router

health_router_root = health_router

registration_router_root = APIRouter(tags=["Registration"])
registration_router_root.include_router(registration_router)

test_router_root = APIRouter(tags=["Testing"])
test_router_root.include_router(test_router)

users_router_root = APIRouter(prefix="/user", tags=["User"])
users_router_root.include_router(users_router)
