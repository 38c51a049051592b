"""
Question bank admin routes.

Admins add, edit and remove questions here; the test list picks the
changes up on its next load. Sessions already running keep the question
copies they were started with.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from quizhub.dependencies import CurrentUser, get_repository, require_admin
from quizhub.errors import DataFetchError, PersistenceError
from quizhub.schemas import QuestionCreate, QuestionUpdate
from quizhub.services.question_repository import QuestionRepository
from quizhub.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


@router.get("/api/questions")
async def list_questions(
    subject: Optional[str] = Query(None, description="Filter by subject"),
    admin: CurrentUser = Depends(require_admin),
    repository: QuestionRepository = Depends(get_repository),
):
    try:
        questions = await repository.fetch_questions(subject)
    except DataFetchError:
        raise HTTPException(status_code=503, detail="Question bank unavailable")
    return {"data": [q.model_dump(mode="json") for q in questions]}


@router.post("/api/questions", status_code=201)
async def add_question(payload: QuestionCreate,
                       admin: CurrentUser = Depends(require_admin),
                       repository: QuestionRepository = Depends(get_repository)):
    try:
        question = await repository.add_question(payload, created_by=admin.id)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Question bank unavailable")
    return question.model_dump(mode="json")


@router.patch("/api/questions/{question_id}")
async def update_question(question_id: str, payload: QuestionUpdate,
                          admin: CurrentUser = Depends(require_admin),
                          repository: QuestionRepository = Depends(get_repository)):
    try:
        question = await repository.update_question(question_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Question bank unavailable")

    if question is None:
        raise HTTPException(status_code=404, detail="Question not found")
    return question.model_dump(mode="json")


@router.delete("/api/questions/{question_id}", status_code=204)
async def delete_question(question_id: str,
                          admin: CurrentUser = Depends(require_admin),
                          repository: QuestionRepository = Depends(get_repository)):
    try:
        deleted = await repository.delete_question(question_id)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Question bank unavailable")

    if not deleted:
        raise HTTPException(status_code=404, detail="Question not found")
    log_with_context(logger, "INFO", "Question {} deleted by admin".format(question_id),
                     context={"user_id": admin.id, "question_id": question_id})
