"""
Annuity Calculator - FastAPI Backend
Features:
- Solve for monthly withdrawal, term, principal or interest rate
- Month-by-month and year-by-year draw-down tables
- CSV upload of parameters and CSV export of the annual table
"""
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, StreamingResponse

from api.annuity import router as annuity_router
from schemas.annuity import template_csv

# Settings
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "5001"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Annuity Calculator API",
    description="Depleting-balance annuity solver with escalating withdrawals",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(annuity_router, prefix="/api")


@app.get("/", response_class=HTMLResponse)
async def index():
    """Home page"""
    return HTMLResponse(content="<h1>Annuity Calculator API</h1><p>Use /docs for API documentation</p>")


@app.get("/health")
async def health_check():
    """Health check endpoint for deployment"""
    return {"status": "healthy", "service": "annuity-calculator-api"}


@app.get("/download-template")
async def download_template():
    """Download the CSV parameter template"""
    return StreamingResponse(
        iter([template_csv()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=annuity_template.csv"}
    )


if __name__ == "__main__":
    import uvicorn
    logger.info("Starting annuity calculator on %s:%s", HOST, PORT)
    uvicorn.run("main:app", host=HOST, port=PORT, reload=True)
