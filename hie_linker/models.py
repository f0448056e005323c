from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire model: camelCase JSON, snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthInformationType(str, Enum):
    OP_CONSULTATION = "OPConsultation"
    PRESCRIPTION = "Prescription"
    DISCHARGE_SUMMARY = "DischargeSummary"
    DIAGNOSTIC_REPORT = "DiagnosticReport"
    IMMUNIZATION = "Immunization"
    WELLNESS_RECORD = "WellnessRecord"
    HEALTH_DOCUMENT_RECORD = "HealthDocumentRecord"


class HealthInformation(CamelModel):
    raw_fhir: bool | None = None
    fhir_document: Any = None  # raw FHIR bundle when raw_fhir is set
    information_type: HealthInformationType
    dto: dict[str, Any] | None = None


class LinkRequest(CamelModel):
    """Inbound unit of work for one linking attempt.

    Construction accepts incomplete payloads; ``validate_link_request``
    reports what is missing.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    patient_reference: str | None = None
    practitioner_reference: str | None = None
    patient_name: str | None = None
    patient_address: str | None = None
    appointment_start_date: str | None = None  # ISO-8601 dateTime
    appointment_end_date: str | None = None
    appointment_priority: str | None = None
    organization_id: str | None = None
    appointment_slot: str | None = None
    reference: str | None = None
    patient_abha_address: str | None = None  # e.g. "jane.doe@sbx"
    hi_type: HealthInformationType | None = None
    mobile_number: str | None = None
    health_records: list[HealthInformation] | None = None


# Stage 1 ---------------------------------------------------------------------

class AppointmentData(CamelModel):
    practitioner_reference: str | None = None
    patient_reference: str | None = None
    start: str | None = None
    end: str | None = None
    priority: str | None = None
    organization_id: str | None = None
    slot: str | None = None
    reference: str | None = None


class AppointmentRecord(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    reference: str | None = None
    start: str | None = None
    end: str | None = None


class AppointmentResult(CamelModel):
    message: str | None = None
    type: str | None = None
    resource_id: str | None = None
    fhir_profile_id: str | None = None
    appointment: AppointmentRecord | None = Field(default=None, alias="resource")


# Stage 2 ---------------------------------------------------------------------

class CareContextData(CamelModel):
    patient_reference: str | None = None
    patient_abha_address: str | None = None
    practitioner_reference: str | None = None
    appointment_reference: str | None = None
    hi_type: HealthInformationType | None = None
    appointment_date: str | None = None  # "hh:mm AM - hh:mm PM"
    resend_otp: bool | None = None


class CareContextResult(CamelModel):
    care_context_reference: str | None = None
    request_id: str | None = None
    auth_modes: list[str] = []


# Stage 3 ---------------------------------------------------------------------

class ConsultationData(CamelModel):
    care_context_reference: str | None = None
    patient_reference: str | None = None
    practitioner_reference: str | None = None
    appointment_reference: str | None = None
    patient_abha_address: str | None = None
    health_records: list[HealthInformation] | None = None
    mobile_number: str | None = None
    request_id: str | None = None


class ConsultationResult(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    care_context_reference: str | None = None
    appointment_reference: str | None = None
    request_id: str | None = None


# Stage 4 ---------------------------------------------------------------------

class LinkCareContextData(CamelModel):
    request_id: str | None = None
    appointment_reference: str | None = None
    patient_address: str | None = None
    patient_reference: str | None = None
    care_context_reference: str | None = None
    auth_mode: str | None = None


class LinkResult(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    message: str | None = None
    type: str | None = None
    request_id: str | None = None


# Per-run diagnostics -----------------------------------------------------------

class LinkingStatus(str, Enum):
    INITIATED = "INITIATED"
    APPOINTMENT_CREATED = "APPOINTMENT_CREATED"
    CARE_CONTEXT_CREATED = "CARE_CONTEXT_CREATED"
    VISIT_RECORDS_UPDATED = "VISIT_RECORDS_UPDATED"
    CARE_CONTEXT_LINKED = "CARE_CONTEXT_LINKED"
    FAILED = "FAILED"


class TransactionState(BaseModel):
    """How far one linking attempt progressed.

    Immutable: every transition returns a new copy, so a run can never alias
    another run's state. Flags only move from False to True.
    """
    model_config = ConfigDict(frozen=True)

    status: LinkingStatus = LinkingStatus.INITIATED
    failed_at: LinkingStatus | None = None
    appointment_reference: str | None = None
    care_context_reference: str | None = None
    request_id: str | None = None
    auth_modes: tuple[str, ...] = ()
    appointment_created: bool = False
    care_context_created: bool = False
    visit_records_updated: bool = False
    care_context_linked: bool = False

    def record_appointment(self, appointment_reference: str) -> "TransactionState":
        return self.model_copy(update={
            "appointment_reference": appointment_reference,
            "appointment_created": True,
            "status": LinkingStatus.APPOINTMENT_CREATED,
        })

    def record_care_context(self, result: CareContextResult) -> "TransactionState":
        return self.model_copy(update={
            "care_context_reference": result.care_context_reference,
            "request_id": result.request_id,
            "auth_modes": tuple(result.auth_modes),
            "care_context_created": True,
            "status": LinkingStatus.CARE_CONTEXT_CREATED,
        })

    def record_visit_records(self) -> "TransactionState":
        return self.model_copy(update={
            "visit_records_updated": True,
            "status": LinkingStatus.VISIT_RECORDS_UPDATED,
        })

    def record_link(self) -> "TransactionState":
        return self.model_copy(update={
            "care_context_linked": True,
            "status": LinkingStatus.CARE_CONTEXT_LINKED,
        })

    def fail(self) -> "TransactionState":
        if self.status is LinkingStatus.FAILED:
            return self
        return self.model_copy(update={"failed_at": self.status, "status": LinkingStatus.FAILED})

    def __str__(self) -> str:
        # references stay out of error text
        flags = (
            ("appointmentCreated", self.appointment_created),
            ("careContextCreated", self.care_context_created),
            ("visitRecordsUpdated", self.visit_records_updated),
            ("careContextLinked", self.care_context_linked),
        )
        return "TransactionState(" + ", ".join(f"{name}={str(value).lower()}" for name, value in flags) + ")"
