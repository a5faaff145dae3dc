from __future__ import annotations

from typing import Any

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query
from pydantic import ValidationError

from rentflow.application import ScrapeJobService, get_scrape_job_service
from rentflow.core.errors import InvalidJobTransition, JobNotFound, UnknownProvider
from rentflow.core.schema import InvoiceRecord
from rentflow.domain import ScrapeFailure, ScrapeJob, ScrapeSuccess
from rentflow.infrastructure import ProviderCredentials
from rentflow.workers.scrape_runner import get_scrape_runner

router = APIRouter(tags=["scraping"])


def _serialise_job(job: ScrapeJob) -> dict[str, Any]:
    terminal = job.status.is_terminal
    return {
        "id": job.job_id,
        "provider": job.provider,
        "utility_provider_id": job.utility_provider_id,
        "utility_type": job.utility_type,
        "location": job.location,
        "status": job.status.value,
        "error_message": job.error_message,
        "records": [record.model_dump(mode="json") for record in job.records],
        "created_at": job.created_at.isoformat(),
        "updated_at": job.updated_at.isoformat(),
        "started_at": job.started_at.isoformat() if job.started_at else None,
        "completed_at": job.completed_at.isoformat() if job.completed_at else None,
        "poll_after_seconds": None if terminal else ScrapeJobService.POLL_INTERVAL_SECONDS,
        "poll_timeout_seconds": ScrapeJobService.POLL_MAX_SECONDS,
    }


def _load_job(service: ScrapeJobService, job_id: str) -> ScrapeJob:
    try:
        return service.get_job(job_id)
    except JobNotFound as exc:
        raise HTTPException(status_code=404, detail="job not found") from exc


@router.post("/scrape-jobs")
async def submit_scrape_job(payload: dict, background_tasks: BackgroundTasks) -> dict:
    provider = payload.get("provider")
    if not provider:
        raise HTTPException(status_code=400, detail="provider is required")
    run = payload.get("run", True)
    if not isinstance(run, bool):
        raise HTTPException(status_code=400, detail="run must be a boolean")
    credentials = ProviderCredentials(
        username=str(payload.get("username") or ""),
        password=str(payload.get("password") or ""),
    )

    service = get_scrape_job_service()
    try:
        job = service.submit_job(
            str(provider),
            credentials,
            utility_provider_id=str(payload.get("utility_provider_id") or ""),
            utility_type=payload.get("utility_type"),
            location=payload.get("location"),
        )
    except UnknownProvider as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    # credentials live only as long as the background task
    if run:
        background_tasks.add_task(get_scrape_runner().run, job.job_id, credentials)
    return _serialise_job(job)


@router.get("/scrape-jobs")
async def list_scrape_jobs(utility_provider_id: str | None = Query(default=None)) -> dict:
    service = get_scrape_job_service()
    return {"items": [_serialise_job(job) for job in service.list_jobs(utility_provider_id)]}


@router.get("/scrape-jobs/{job_id}")
async def get_scrape_job(job_id: str) -> dict:
    return _serialise_job(_load_job(get_scrape_job_service(), job_id))


@router.post("/scrape-jobs/{job_id}/start")
async def start_scrape_job(job_id: str) -> dict:
    service = get_scrape_job_service()
    _load_job(service, job_id)
    try:
        job = service.start_job(job_id)
    except InvalidJobTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _serialise_job(job)


@router.post("/scrape-jobs/{job_id}/outcome")
async def report_scrape_outcome(job_id: str, payload: dict) -> dict:
    """Record the result reported by an external runner.

    ``{"success": true, "records": [...]}`` completes the job and stores the
    invoices; ``{"success": false, "reason": "..."}`` fails it.
    """
    if "success" not in payload:
        raise HTTPException(status_code=400, detail="success is required")

    if payload["success"]:
        raw_records = payload.get("records") or []
        if not isinstance(raw_records, list):
            raise HTTPException(status_code=400, detail="records must be a list")
        try:
            records = [InvoiceRecord.model_validate(item) for item in raw_records]
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=f"invalid invoice record: {exc}") from exc
        outcome = ScrapeSuccess(records=records)
    else:
        reason = str(payload.get("reason") or "").strip()
        if not reason:
            raise HTTPException(status_code=400, detail="reason is required")
        outcome = ScrapeFailure(reason=reason)

    service = get_scrape_job_service()
    _load_job(service, job_id)
    try:
        job = service.advance_job(job_id, outcome)
    except InvalidJobTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _serialise_job(job)


@router.get("/utility-invoices")
async def list_utility_invoices(utility_provider_id: str | None = Query(default=None)) -> dict:
    service = get_scrape_job_service()
    invoices = service.list_invoices(utility_provider_id)
    return {"items": [invoice.model_dump(mode="json") for invoice in invoices]}
