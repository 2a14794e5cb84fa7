# routes.py
from fastapi import FastAPI
from controller.admin_controller import admin_router, auth_router
from controller.meal_controller import meal_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(meal_router)
