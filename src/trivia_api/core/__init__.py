# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Core infrastructure for the Trivia Questions API."""

from .admission import AdmissionQueue
from .cache import TTLCache
from .config import get_settings
from .database import Database
from .pool_monitor import PoolMonitor
from .retry import RetryPolicy, with_retry

__all__ = [
    "AdmissionQueue",
    "Database",
    "PoolMonitor",
    "RetryPolicy",
    "TTLCache",
    "get_settings",
    "with_retry",
]
