# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""FastAPI dependencies resolving the running service graph."""

from fastapi import Depends, Request

from ..bootstrap import AppServices
from ..core.config import Settings
from ..services.question_service import QuestionService


async def get_services(request: Request) -> AppServices:
    """Provide the service graph built during application startup."""
    return request.app.state.services


async def get_question_service(
    services: AppServices = Depends(get_services),
) -> QuestionService:
    return services.questions


async def get_app_settings(services: AppServices = Depends(get_services)) -> Settings:
    return services.settings
