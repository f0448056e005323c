"""Entry validation for linking requests and per-stage checks on outgoing DTOs.

Every check raises ``ValidationError`` on the first problem it finds.
"""
from __future__ import annotations

import re
from datetime import datetime

from .errors import ValidationError
from .models import (
    AppointmentData,
    CareContextData,
    ConsultationData,
    LinkCareContextData,
    LinkRequest,
)

UUID_PATTERN = re.compile(r"[a-fA-F0-9]{32}|[a-fA-F0-9-]{36}")
UUID36_PATTERN = re.compile(r"[a-fA-F0-9-]{36}")
MOBILE_PATTERN = re.compile(r"[0-9]{10}")
ABHA_SUFFIX_PATTERN = re.compile(r"@(?:sbx|abdm)\Z")


def is_null_or_empty(value: str | None) -> bool:
    return value is None or value == "" or value == "null"


def require(value: str | None, field_name: str) -> str:
    if is_null_or_empty(value):
        raise ValidationError(f"{field_name} cannot be null or empty")
    return value


def parse_datetime(value: str, field_name: str) -> datetime:
    """Parse an ISO-8601 date-time, accepting a trailing ``Z``."""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"{field_name} must be an ISO-8601 date-time") from exc


def validate_link_request(request: LinkRequest | None) -> LinkRequest:
    if request is None:
        raise ValidationError("Input data cannot be null")

    require(request.patient_reference, "patientReference")
    if not UUID_PATTERN.fullmatch(request.patient_reference):
        raise ValidationError("Patient reference must be a valid 32 or 36 character UUID")

    require(request.practitioner_reference, "practitionerReference")
    if not UUID_PATTERN.fullmatch(request.practitioner_reference):
        raise ValidationError("Practitioner reference must be a valid 32 or 36 character UUID")

    require(request.appointment_start_date, "appointmentStartDate")
    require(request.appointment_end_date, "appointmentEndDate")

    if request.appointment_priority is not None and request.appointment_priority == "":
        raise ValidationError("Appointment priority cannot be empty")

    require(request.organization_id, "organizationID")

    if request.hi_type is None:
        raise ValidationError("Health information type is required")

    require(request.mobile_number, "mobileNumber")

    if not MOBILE_PATTERN.fullmatch(request.mobile_number):
        raise ValidationError("Mobile number must be exactly 10 digits")
    if request.patient_abha_address and not ABHA_SUFFIX_PATTERN.search(request.patient_abha_address):
        raise ValidationError("Patient ABHA address must end with @sbx or @abdm")

    start = parse_datetime(request.appointment_start_date, "appointmentStartDate")
    end = parse_datetime(request.appointment_end_date, "appointmentEndDate")
    try:
        ends_before_start = end < start
    except TypeError as exc:  # naive vs aware
        raise ValidationError("Appointment dates must both carry a timezone or both omit it") from exc
    if ends_before_start:
        raise ValidationError("Appointment end date must not be before the start date")

    return request


def check_appointment(data: AppointmentData) -> AppointmentData:
    require(data.practitioner_reference, "practitionerReference")
    require(data.patient_reference, "patientReference")
    require(data.start, "start")
    require(data.end, "end")
    return data


def check_care_context(data: CareContextData) -> CareContextData:
    require(data.patient_reference, "patientReference")
    require(data.practitioner_reference, "practitionerReference")
    require(data.appointment_reference, "appointmentReference")
    require(data.appointment_date, "appointmentDate")

    if not UUID36_PATTERN.fullmatch(data.patient_reference):
        raise ValidationError("Patient reference must be a valid 36-character UUID")
    if not UUID36_PATTERN.fullmatch(data.practitioner_reference):
        raise ValidationError("Practitioner reference must be a valid 36-character UUID")
    if not UUID36_PATTERN.fullmatch(data.appointment_reference):
        raise ValidationError("Appointment reference must be a valid 36-character UUID")

    if data.hi_type is None:
        raise ValidationError("Health information type is required")
    if data.resend_otp is None:
        raise ValidationError("Resend OTP flag is required")
    return data


def check_consultation(data: ConsultationData) -> ConsultationData:
    require(data.care_context_reference, "careContextReference")
    require(data.patient_reference, "patientReference")
    require(data.practitioner_reference, "practitionerReference")
    require(data.appointment_reference, "appointmentReference")
    return data


def check_link_data(data: LinkCareContextData) -> LinkCareContextData:
    require(data.request_id, "requestId")
    require(data.appointment_reference, "appointmentReference")
    require(data.patient_address, "patientAddress")
    require(data.patient_reference, "patientReference")
    require(data.care_context_reference, "careContextReference")
    require(data.auth_mode, "authMode")
    return data
