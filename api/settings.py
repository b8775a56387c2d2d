"""Account settings routes. Require a bearer token."""

from fastapi import APIRouter, Request

from api.base import success_response
from auth.api import get_client_ip
from core.models.settings import SettingsUpdate
from core.services.settings_service import SettingsService


def create_settings_router(settings_service: SettingsService) -> APIRouter:
    router = APIRouter(tags=["settings"])

    @router.get("")
    def get_settings(request: Request):
        view = settings_service.get(request.state.account_id)
        return success_response(view.model_dump(mode="json")).model_dump(mode="json")

    @router.patch("")
    def update_settings(request: Request, body: SettingsUpdate):
        view = settings_service.update(request.state.account_id, body)
        return success_response(view.model_dump(mode="json")).model_dump(mode="json")

    @router.delete("/account")
    def delete_account(request: Request):
        settings_service.delete_account(
            request.state.account_id,
            ip_address=get_client_ip(request),
        )
        return success_response(
            {"message": "User account and associated data successfully deleted."}
        ).model_dump(mode="json")

    return router
