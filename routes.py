# routes.py
from fastapi import FastAPI
from controller.generation_controller import asset_router, generation_router
from controller.item_controller import item_router
from controller.job_controller import job_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(item_router)
    app.include_router(generation_router)
    app.include_router(job_router)
    app.include_router(asset_router)
