from fastapi import APIRouter, Request

from service_template.utils.project import get_project_version

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    settings = request.app.state.settings
    body = {"status": "up", "service": settings.SERVICE_NAME, "version": get_project_version(), "env": settings.ENV}
    return request.app.state.responses.success(body).to_response()
