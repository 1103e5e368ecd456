from fastapi import APIRouter, Body, Request, Response
from starlette.responses import StreamingResponse

from ghsbinder.models import SiteSettingsPatch
from ghsbinder.services import Services
from ghsbinder.utils import binder

router = APIRouter(prefix="/customers")


@router.get("")
async def list_customers(request: Request) -> Response:
    services: Services = request.state.services
    return {"success": True, "customers": services.store.summaries()}


@router.post("")
async def create_customer(request: Request, payload: dict = Body(...)) -> Response:
    services: Services = request.state.services
    config = services.store.create(payload)
    return {
        "success": True,
        "message": "Customer created successfully",
        "customer": config.customer_info,
    }


@router.delete("/{slug}")
async def delete_customer(request: Request, slug: str) -> Response:
    services: Services = request.state.services
    await services.deployer.delete_customer_site(slug)
    return {"success": True, "message": f"Customer site {slug} deleted successfully"}


@router.post("/{slug}/deploy")
async def deploy_customer(request: Request, slug: str) -> Response:
    services: Services = request.state.services
    result = await services.deployer.deploy_customer(slug)
    return {"success": True, "result": result}


@router.patch("/{slug}/site-settings")
async def update_site_settings(request: Request, slug: str, patch: SiteSettingsPatch) -> Response:
    services: Services = request.state.services
    result = await services.deployer.update_customer_site(slug, patch)
    return {"success": True, "result": result}


@router.get("/{slug}/checklist")
async def generate_checklist(request: Request, slug: str) -> Response:
    services: Services = request.state.services
    checklist = services.chemicals.generate_checklist(slug)
    return Response(
        content=checklist,
        media_type="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{slug}-checklist.md"'},
    )


@router.get("/{slug}/binder")
async def download_binder(request: Request, slug: str) -> Response:
    services: Services = request.state.services
    assembled = binder.assemble(services.store.load(slug), services.pdfs_dir, services.templater)
    return StreamingResponse(
        content=assembled.pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{slug}-complete-ghs-binder.pdf"'},
    )
