"""Router package: gathers the arcade, payment and status routers."""

from fastapi import FastAPI

from optik_arcade.routers import arcade, payment, status


def register_all_routers(app: FastAPI):
    app.include_router(status.router)
    app.include_router(arcade.router)
    app.include_router(payment.router)
