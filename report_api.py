#!/usr/bin/env python3
"""
CREDIT REPORT API
=================
HTTP layer around the credit report engine.

Endpoints:
- POST /api/report          render posted report data (optional logo_url)
- GET  /api/report/sample   render the built-in sample report
- GET  /health
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from report_assets import fetch_logo, load_logo
from report_errors import DataIntegrityError, ReportError
from report_generator import ReportConfig, export_pdf, render, suggested_filename
from report_models import ReportData
from report_samples import sample_report_data

# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger("credit-report.api")

LOGO_URL = os.getenv("CREDIT_REPORT_LOGO_URL", "")
LOGO_PATH = os.getenv("CREDIT_REPORT_LOGO_PATH", "")

app = FastAPI(
    title="Credit Report API",
    description="Paginated PDF credit reports",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ReportRequest(BaseModel):
    data: ReportData
    logo_url: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

async def resolve_logo(logo_url: Optional[str] = None) -> Optional[bytes]:
    """Fetch the logo before layout starts. Request URL wins over settings."""
    url = logo_url or LOGO_URL
    if url:
        return await fetch_logo(url)
    if LOGO_PATH:
        return load_logo(LOGO_PATH)
    return None


def build_pdf_response(data: ReportData, logo: Optional[bytes]):
    try:
        document = render(data, logo=logo, config=ReportConfig.from_env())
        pdf_bytes = export_pdf(document)
    except DataIntegrityError as e:
        logger.warning(f"Rejected report data: {e}")
        return JSONResponse(status_code=422, content={
            "error": "report could not be generated",
            "cause": str(e),
            "invariant": e.invariant,
            "reference": e.reference,
        })
    except ReportError as e:
        logger.error(f"Report generation failed: {e}")
        return JSONResponse(status_code=500, content={
            "error": "report could not be generated",
            "cause": str(e),
        })

    filename = suggested_filename(document)
    logger.info(f"Generated {filename} ({len(pdf_bytes)} bytes, {document.page_count} pages)")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "X-Report-ID": document.id,
            "X-Page-Count": str(document.page_count),
        }
    )


# ═══════════════════════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════════

@app.get("/health")
async def health():
    return {"status": "ok", "service": "credit-report"}


@app.post("/api/report")
async def create_report(request: ReportRequest):
    """Render posted report data as a downloadable PDF."""
    logo = await resolve_logo(request.logo_url)
    return build_pdf_response(request.data, logo)


@app.get("/api/report/sample")
async def sample_report():
    """Render the built-in sample report."""
    logo = await resolve_logo()
    return build_pdf_response(sample_report_data(), logo)


if __name__ == "__main__":
    import uvicorn
    print("\n" + "="*60)
    print("CREDIT REPORT API")
    print("="*60)
    print(f"\nLogo: {LOGO_URL or LOGO_PATH or '[none] text fallback'}")
    print(f"\nStarting server on http://localhost:3030")
    print("="*60 + "\n")
    uvicorn.run(app, host="0.0.0.0", port=3030)
