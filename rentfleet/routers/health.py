"""
System health check endpoint.
Returns status of backend + DB + reconciliation sweep.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from rentfleet.database import get_db
from rentfleet.routers.reconcile import get_reconciliation_runner
from rentfleet.services.reconciliation import ReconciliationRunner
from rentfleet.utils.clock import utcnow

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db),
                 runner: ReconciliationRunner = Depends(get_reconciliation_runner)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Reconciliation sweep runs/failures and last error
    """
    result = {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "reconciliation": runner.status(),
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except SQLAlchemyError as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    if result["reconciliation"]["last_error"]:
        result["status"] = "degraded"

    return result
