"""Async HIE backend client for the four document-linking stages.
Assumes a static API key issued to the facility (no token exchange).
"""
from __future__ import annotations
import logging
import os
from typing import Any
import httpx
from dotenv import load_dotenv
from pydantic import BaseModel
from .errors import ErrorType, RemoteServiceError, error_type_for_status
from .models import (
    AppointmentData,
    AppointmentResult,
    CareContextData,
    CareContextResult,
    ConsultationData,
    ConsultationResult,
    LinkCareContextData,
    LinkResult,
)

load_dotenv()

logger = logging.getLogger(__name__)

_BASE_URL = os.getenv("EHR_API_URL", "http://localhost:8080")
_API_KEY = os.getenv("EHR_API_KEY", "")
_HPRID_AUTH = os.getenv("EHR_HPRID_AUTH")
_TIMEOUT = float(os.getenv("EHR_TIMEOUT", "10"))

APPOINTMENT_PATH = "/add/Appointment"
CREATE_CARE_CONTEXT_PATH = "/abdm-flows/create-carecontext"
UPDATE_VISIT_RECORDS_PATH = "/abdm-flows/update-visit-records"
LINK_CARE_CONTEXT_PATH = "/abdm-flows/link-carecontext"


def _headers() -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {_API_KEY}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if _HPRID_AUTH and _HPRID_AUTH.strip():
        headers["x-hprid-auth"] = _HPRID_AUTH
    return headers


async def _post(path: str, payload: BaseModel) -> Any:
    """POST a stage payload and return the decoded JSON body (None when empty)."""
    body = payload.model_dump(by_alias=True, exclude_none=True, mode="json")
    try:
        async with httpx.AsyncClient(http2=True, timeout=_TIMEOUT) as client:
            resp = await client.post(f"{_BASE_URL}{path}", headers=_headers(), json=body)
            resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.error(f"POST {path} failed: Status - {status}, Body - {exc.response.text}")
        raise RemoteServiceError(
            f"Error: {exc.response.text or status}", error_type_for_status(status), body=exc.response.text
        ) from exc
    except httpx.HTTPError as exc:
        logger.error(f"POST {path} failed: {exc!r}")
        raise RemoteServiceError(f"Unexpected Error: {exc}", ErrorType.CONNECTION) from exc

    if not resp.content:
        return None
    return resp.json()


async def create_appointment(data: AppointmentData) -> AppointmentResult | None:
    """Create the Appointment resource. Returns None when the backend sends no payload."""
    payload = await _post(APPOINTMENT_PATH, data)
    logger.debug(f"Raw Appointment Response: {payload}")
    if not payload:
        return None
    return AppointmentResult.model_validate(payload)


async def create_care_context(data: CareContextData) -> CareContextResult:
    payload = await _post(CREATE_CARE_CONTEXT_PATH, data)
    return CareContextResult.model_validate(payload or {})


async def update_visit_records(data: ConsultationData) -> ConsultationResult:
    payload = await _post(UPDATE_VISIT_RECORDS_PATH, data)
    return ConsultationResult.model_validate(payload or {})


async def link_care_context(data: LinkCareContextData) -> LinkResult:
    payload = await _post(LINK_CARE_CONTEXT_PATH, data)
    logger.info(f"LinkCareContext API response: {payload}")
    return LinkResult.model_validate(payload or {})
