"""Pure projections from a LinkRequest (plus earlier stage results) to stage payloads."""
from __future__ import annotations

import os
import uuid

from dotenv import load_dotenv

from .models import (
    AppointmentData,
    CareContextData,
    ConsultationData,
    LinkCareContextData,
    LinkRequest,
    TransactionState,
)
from .validators import parse_datetime

load_dotenv()

DEFAULT_AUTH_MODE = os.getenv("EHR_DEFAULT_AUTH_MODE", "DEMOGRAPHICS")

_TIME_FORMAT = "%I:%M %p"


def to_hyphenated_uuid(reference: str) -> str:
    """Return the 36-char form of a 32-hex reference; other values pass through."""
    if len(reference) == 32:
        try:
            return str(uuid.UUID(hex=reference))
        except ValueError:
            return reference
    return reference


def format_time_range(start: str, end: str) -> str:
    """``"2025-02-28T09:00:00Z", "2025-02-28T10:00:00Z"`` -> ``"09:00 AM - 10:00 AM"``."""
    start_at = parse_datetime(start, "appointmentStartDate")
    end_at = parse_datetime(end, "appointmentEndDate")
    return f"{start_at.strftime(_TIME_FORMAT)} - {end_at.strftime(_TIME_FORMAT)}"


def to_appointment(request: LinkRequest) -> AppointmentData:
    return AppointmentData(
        practitioner_reference=request.practitioner_reference,
        patient_reference=request.patient_reference,
        start=request.appointment_start_date,
        end=request.appointment_end_date,
        priority=request.appointment_priority,
        organization_id=request.organization_id,
        slot=request.appointment_slot,
        reference=request.reference,
    )


def to_care_context(request: LinkRequest, state: TransactionState) -> CareContextData:
    return CareContextData(
        patient_reference=to_hyphenated_uuid(request.patient_reference),
        patient_abha_address=request.patient_abha_address,
        practitioner_reference=to_hyphenated_uuid(request.practitioner_reference),
        appointment_reference=state.appointment_reference,
        hi_type=request.hi_type,
        appointment_date=format_time_range(request.appointment_start_date, request.appointment_end_date),
        resend_otp=False,
    )


def to_consultation(request: LinkRequest, state: TransactionState) -> ConsultationData:
    return ConsultationData(
        care_context_reference=state.care_context_reference,
        patient_reference=request.patient_reference,
        practitioner_reference=request.practitioner_reference,
        appointment_reference=state.appointment_reference,
        patient_abha_address=request.patient_abha_address,
        health_records=request.health_records,
        mobile_number=request.mobile_number,
        request_id=state.request_id,
    )


def to_link_data(request: LinkRequest, state: TransactionState) -> LinkCareContextData:
    # The first auth mode the backend offered for this care context wins.
    auth_mode = state.auth_modes[0] if state.auth_modes else DEFAULT_AUTH_MODE
    return LinkCareContextData(
        request_id=state.request_id,
        appointment_reference=state.appointment_reference,
        patient_address=request.patient_abha_address or request.patient_address,
        patient_reference=request.patient_reference,
        care_context_reference=state.care_context_reference,
        auth_mode=auth_mode,
    )
