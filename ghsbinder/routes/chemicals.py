from fastapi import APIRouter, Body, Request, Response

from ghsbinder.services import Services

router = APIRouter(prefix="/customers/{slug}/chemicals")


@router.get("")
async def list_chemicals(request: Request, slug: str, include_inactive: bool = False) -> Response:
    services: Services = request.state.services
    listing = services.chemicals.list_chemicals(slug, include_inactive)
    return {"success": True, **listing.model_dump(mode="json")}


@router.post("")
async def add_chemical(request: Request, slug: str, payload: dict = Body(...),
                       redeploy: bool = True) -> Response:
    services: Services = request.state.services
    result = await services.chemicals.add(slug, payload, redeploy=redeploy)
    return {"success": True, "result": result}


@router.post("/bulk")
async def bulk_add_chemicals(request: Request, slug: str, payload: list = Body(...),
                             redeploy: bool = True) -> Response:
    services: Services = request.state.services
    result = await services.chemicals.bulk_add(slug, payload, redeploy=redeploy)
    return {"success": result.success, "result": result}


@router.patch("/{chemical_id}")
async def update_chemical(request: Request, slug: str, chemical_id: str,
                          payload: dict = Body(...), redeploy: bool = True) -> Response:
    services: Services = request.state.services
    result = await services.chemicals.update(slug, chemical_id, payload, redeploy=redeploy)
    return {"success": True, "result": result}


@router.delete("/{chemical_id}")
async def remove_chemical(request: Request, slug: str, chemical_id: str,
                          redeploy: bool = True) -> Response:
    services: Services = request.state.services
    result = await services.chemicals.remove(slug, chemical_id, redeploy=redeploy)
    return {"success": True, "result": result}
