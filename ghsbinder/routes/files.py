from typing import List, Optional

from fastapi import APIRouter, File, Request, Response, UploadFile

from ghsbinder.constants import MAX_UPLOAD_BYTES
from ghsbinder.exceptions import BinderError, InvalidUpload
from ghsbinder.services import Services

router = APIRouter()


@router.get("/customers/{slug}/files")
async def list_files(request: Request, slug: str) -> Response:
    services: Services = request.state.services
    return {"success": True, "files": services.staging.list_files(slug)}


@router.post("/customers/{slug}/files/upload")
async def upload_files(request: Request, slug: str,
                       files: Optional[List[UploadFile]] = File(None)) -> Response:
    services: Services = request.state.services
    # Unknown customers are rejected before any file is read
    services.staging.directory(slug)
    if not files:
        raise InvalidUpload("No files uploaded")

    results = []
    for upload in files:
        content = await upload.read()
        if len(content) > MAX_UPLOAD_BYTES:
            results.append({
                "filename": upload.filename,
                "success": False,
                "error": f"File exceeds {MAX_UPLOAD_BYTES} bytes",
            })
            continue
        try:
            staged = services.staging.save(slug, upload.filename, content)
        except BinderError as e:
            results.append({"filename": upload.filename, "success": False, "error": e.message})
        else:
            results.append({"success": True, **staged.model_dump(mode="json")})

    uploaded = sum(1 for result in results if result["success"])
    return {
        "success": True,
        "uploaded": uploaded,
        "failed": len(results) - uploaded,
        "results": results,
    }


@router.delete("/customers/{slug}/files/{filename}")
async def delete_file(request: Request, slug: str, filename: str) -> Response:
    services: Services = request.state.services
    services.staging.delete(slug, filename)
    return {"success": True, "message": "File deleted successfully"}


@router.get("/files/status")
async def file_status(request: Request) -> Response:
    services: Services = request.state.services
    return {"success": True, "fileStatus": services.staging.status_report()}
