"""
Export Endpoints

Downloads of a user's listening data as JSON, CSV or a PDF-ready JSON
structure (PDF rendering happens client-side).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from listenstats.reports import EXPORT_TYPES, export_csv
from listenstats.services.stats_service import StatsService, get_stats_service

router = APIRouter()
logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv", "pdf")


def export_filename(export_type: str, extension: str, now: datetime | None = None) -> str:
    day = (now or datetime.now(timezone.utc)).date().isoformat()
    return f"listening-stats-{export_type}-{day}.{extension}"


@router.get("")
async def export_data(
    user_id: str = Query(..., description="User whose data to export"),
    format: str = Query("json", description="Export format: json, csv or pdf"),
    type: str = Query("all", description="Data: all, plays, artists, tracks, genres, stats"),
    service: StatsService = Depends(get_stats_service),
) -> StreamingResponse:
    """
    Export listening data.

    Args:
        user_id: User whose data to export
        format: Export format
        type: Which data set to export

    Returns:
        Streaming response with the exported data as an attachment
    """
    export_format = format.lower()
    if export_format not in EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail="Invalid format. Use 'json', 'csv' or 'pdf'")
    if type not in EXPORT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid type. Use one of: {', '.join(EXPORT_TYPES)}",
        )

    try:
        payload = service.get_export(user_id, type)
    except Exception as e:
        logger.exception("Failed to export %s data", type)
        raise HTTPException(status_code=500, detail=str(e))

    if export_format == "csv":
        filename = export_filename(type, "csv")
        return StreamingResponse(
            iter([export_csv(payload, type)]),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    if export_format == "pdf":
        payload = {**payload, "pdf_ready": True}

    filename = export_filename(type, "json")
    return StreamingResponse(
        iter([json.dumps(payload, indent=2)]),
        media_type="application/json",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
