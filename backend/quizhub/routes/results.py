"""
Results API routes - prior attempts, aggregates and durable review.

Reads degrade to empty lists when the result store is unavailable.
"""

import time

from fastapi import APIRouter, Depends, HTTPException

from quizhub.dependencies import CurrentUser, get_current_user, get_recorder, require_admin
from quizhub.errors import DataFetchError
from quizhub.services.result_recorder import ResultRecorder, summarize
from quizhub.services.scoring import build_review
from quizhub.routes.catalog import fetch_results_or_empty, serialize_result
from quizhub.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


@router.get("/api/results")
async def list_results(user: CurrentUser = Depends(get_current_user),
                       recorder: ResultRecorder = Depends(get_recorder)):
    """The caller's results, newest first."""
    results = await fetch_results_or_empty(recorder, user.id)
    return {"data": [serialize_result(r) for r in results]}


@router.get("/api/results/summary")
async def results_summary(user: CurrentUser = Depends(get_current_user),
                          recorder: ResultRecorder = Depends(get_recorder)):
    results = await fetch_results_or_empty(recorder, user.id)
    return summarize(results).model_dump()


@router.get("/api/results/{result_id}/review")
async def review_result(result_id: str,
                        user: CurrentUser = Depends(get_current_user),
                        recorder: ResultRecorder = Depends(get_recorder)):
    """Rebuild the answer review of a stored result from its question snapshot."""
    try:
        result = await recorder.get(result_id)
    except DataFetchError:
        raise HTTPException(status_code=503, detail="Result store unavailable")

    if result is None or (result.user_id != user.id and not user.is_admin):
        raise HTTPException(status_code=404, detail="Result not found")

    return {
        "result": serialize_result(result),
        "review": [item.model_dump() for item in build_review(result.questions, result.answers)],
    }


@router.get("/api/admin/results")
async def list_all_results(admin: CurrentUser = Depends(require_admin),
                           recorder: ResultRecorder = Depends(get_recorder)):
    """Every recorded result, newest first."""
    start_time = time.time()
    try:
        results = await recorder.list_all()
    except DataFetchError as e:
        log_with_context(logger, "WARNING", "Result store unavailable for admin listing",
                         context={"user_id": admin.id}, extra_data={"error": str(e)})
        results = []

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO", "Admin listed {} results".format(len(results)),
                     context={"user_id": admin.id},
                     extra_data={"duration_ms": round(duration_ms, 2)})
    return {"data": [serialize_result(r) for r in results]}
