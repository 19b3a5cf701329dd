# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Question retrieval endpoint."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..core.config import Settings
from ..schemas.responses import ErrorResponse, QuestionListResponse
from ..services.question_service import QuestionService
from .dependencies import get_app_settings, get_question_service
from .response_patterns import APIResponseHandler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/questions",
    response_model=QuestionListResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid query parameters"},
        503: {"model": ErrorResponse, "description": "Server busy or queue timeout"},
        500: {"model": ErrorResponse, "description": "Database failure"},
    },
)
async def get_questions(
    limit: str | None = Query(default=None, description="Number of questions"),
    category: str | None = Query(default=None, description="Category filter"),
    difficulty: str | None = Query(default=None, description="Easy, Medium or Hard"),
    service: QuestionService = Depends(get_question_service),
    settings: Settings = Depends(get_app_settings),
) -> QuestionListResponse | JSONResponse:
    """Return a random batch of trivia questions.

    ``limit`` is taken as a raw string so that malformed values produce the
    service's own 400 message instead of a framework validation error.
    """
    result = await service.get_questions(limit, category, difficulty)
    batch = APIResponseHandler.from_result(result, is_production=settings.is_production)
    if isinstance(batch, JSONResponse):
        return batch

    logger.info(f"Served {len(batch)} questions from {batch.source.value}")
    return QuestionListResponse(
        data=list(batch.questions),
        source=batch.source.value,
    )
