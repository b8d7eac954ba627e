# api/transfers.py
"""
Transfer Analysis Endpoint
Runs the aggregation pipeline for a complete itinerary.
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger

from ..agents.aggregation import transfer_pipeline
from ..schemas.transfer_schemas import AnalyzeTransfersRequest, AnalyzeTransfersResponse


router = APIRouter(prefix="/api", tags=["transfers"])


@router.post("/analyze-transfers", response_model=AnalyzeTransfersResponse)
async def analyze_transfers(request: AnalyzeTransfersRequest):
    """Offers, supplier enrichment and narratives for one itinerary"""
    if not request.transfer_data:
        raise HTTPException(status_code=400, detail="Transfer data is required")

    try:
        result = await transfer_pipeline.run(request.transfer_data, request.user_language or "en")
    except Exception as e:
        logger.exception(f"analyze-transfers failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to analyze transfers", "data": None}
        )

    return AnalyzeTransfersResponse(**result.to_dict())
