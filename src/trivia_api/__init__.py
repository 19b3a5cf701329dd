# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Trivia Questions API.

Serves random batches of trivia questions from PostgreSQL behind a TTL
cache and a bounded admission queue.
"""

__version__ = "1.0.0"
