"""Purchase analysis API.

Provides:
  - POST /analysis/ -> analyze a purchase (always 200 with a valid result)
  - GET /analysis/keys -> API key health (masked)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from purchase_guard.advisor.service import PurchaseAdvisor
from purchase_guard.core.dependencies import get_advisor
from purchase_guard.schemas.analysis import AnalysisResultOut, AnalyzeRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("/", response_model=AnalysisResultOut)
async def analyze_purchase(
    body: AnalyzeRequest,
    advisor: PurchaseAdvisor = Depends(get_advisor),
):
    """Analyze a potential purchase.

    Model or transport outages never surface as errors here: the response
    is the fallback analysis, marked with ``source: "fallback"``.
    """
    request = body.to_request()
    result = await advisor.analyze(request)
    logger.info(
        "Analyzed %r: action=%s source=%s",
        request.product.name,
        result.suggested_action.value,
        result.source.value,
    )
    return result.to_dict()


@router.get("/keys")
async def key_health(advisor: PurchaseAdvisor = Depends(get_advisor)):
    return advisor.get_status()
