# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""HTTP API routers."""

from fastapi import APIRouter

from .health import router as health_router
from .questions import router as questions_router

router = APIRouter(prefix="/api")

router.include_router(questions_router, tags=["questions"])
router.include_router(health_router, tags=["health"])

__all__ = ["router"]
