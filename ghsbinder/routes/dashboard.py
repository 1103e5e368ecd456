from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from ghsbinder.services import Services

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request) -> HTMLResponse:
    services: Services = request.state.services
    statuses = {status.slug: status for status in services.staging.status_report()}
    return HTMLResponse(services.templater.render_dashboard(
        customers=services.store.summaries(),
        statuses=statuses,
    ))
