import logging

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from engine.errors import AnnuityError, MissingInput
from schemas.annuity import Err, csv_to_payload, validate_params
from services.annuity_service import export_annual_csv, failure_payload, run_calculation_service

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = {'csv'}
MAX_CONTENT_LENGTH = 1024 * 1024  # 1MB


def allowed_file(filename: str) -> bool:
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


async def read_payload(request: Request, file: UploadFile = None) -> dict:
    """Raw parameters from a CSV upload or a JSON body"""
    if file and file.filename:
        if not allowed_file(file.filename):
            raise HTTPException(status_code=400, detail="Invalid file format")
        content = await file.read()
        if len(content) > MAX_CONTENT_LENGTH:
            raise HTTPException(status_code=413, detail="File too large")
        try:
            return csv_to_payload(content)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            return await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Malformed JSON body")

    raise HTTPException(status_code=400, detail="No file or data provided")


def validation_error_response(outcome: Err) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={'success': False, 'errors': [e.to_dict() for e in outcome.errors]},
    )


@router.post("/calculate")
async def calculate_endpoint(request: Request, file: UploadFile = File(None)):
    """
    Solve an annuity for the requested unknown. Supports CSV upload or JSON body.
    """
    payload = await read_payload(request, file)
    outcome = validate_params(payload)
    if not outcome.ok:
        return validation_error_response(outcome)

    try:
        return run_calculation_service(outcome.params)
    except MissingInput as e:
        raise HTTPException(status_code=400, detail=failure_payload(e)['error'])
    except Exception as e:
        logger.exception("Calculation failed")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/export-annual")
async def export_annual_endpoint(request: Request, file: UploadFile = File(None)):
    """Annual table of a solved annuity as a CSV download"""
    payload = await read_payload(request, file)
    outcome = validate_params(payload)
    if not outcome.ok:
        return validation_error_response(outcome)

    try:
        csv_text = export_annual_csv(outcome.params)
    except AnnuityError as e:
        raise HTTPException(status_code=400, detail=failure_payload(e)['error'])
    except Exception as e:
        logger.exception("Export failed")
        raise HTTPException(status_code=500, detail=str(e))

    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=annuity_annual.csv"}
    )

