"""
Manual trigger and status for the reconciliation sweep.
Shares the scheduler's runner, so a manual run never overlaps a timed one.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from rentfleet.schemas.availability import ReconciliationReportOut
from rentfleet.services.reconciliation import ReconciliationRunner, reconciliation_runner

router = APIRouter()


def get_reconciliation_runner() -> ReconciliationRunner:
    return reconciliation_runner


@router.post("/reconcile", response_model=ReconciliationReportOut, summary="Run a reconciliation sweep now")
def run_reconciliation(runner: ReconciliationRunner = Depends(get_reconciliation_runner)):
    report = runner.run_once(raise_if_busy=True)
    if report is None:
        return JSONResponse(status_code=503, content={"error": "sweep_failed", "detail": runner.last_error})
    return report.to_dict()


@router.get("/reconcile/status", summary="Last sweep outcome")
def reconciliation_status(runner: ReconciliationRunner = Depends(get_reconciliation_runner)):
    return runner.status()
