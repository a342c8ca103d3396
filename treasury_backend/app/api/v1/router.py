"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from treasury_backend.app.api.v1.endpoints import payments, treasury

router = APIRouter()

# Payments ledger
router.include_router(payments.router)

# Treasury statistics and reports
router.include_router(treasury.router)
