# SPDX-FileCopyrightText: 2025 Weibo, Inc.
#
# SPDX-License-Identifier: Apache-2.0

"""
API router module, providing a global API router instance
"""

from fastapi import APIRouter

from campus_assistant.api.endpoints import health, staff

api_router = APIRouter()

# Health and metrics endpoints (no prefix)
api_router.include_router(health.router, tags=["health"])
api_router.include_router(staff.router, tags=["staff"])
