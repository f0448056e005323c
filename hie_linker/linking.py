"""Health document linking pipeline.

Attaches a clinical document bundle to a patient's record by running four
dependent remote stages in order:

    INITIATED -> APPOINTMENT_CREATED -> CARE_CONTEXT_CREATED
              -> VISIT_RECORDS_UPDATED -> CARE_CONTEXT_LINKED

Any stage may end the run in FAILED. Each stage builds its payload from the
request and the state left by the stages before it, so nothing runs in
parallel within a run. Created resources are not rolled back when a later
stage fails.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from . import client, mapper
from .errors import EhrApiError, ErrorType, RemoteServiceError, ValidationError
from .models import (
    AppointmentResult,
    CareContextResult,
    LinkRequest,
    TransactionState,
)
from .validators import (
    check_appointment,
    check_care_context,
    check_consultation,
    check_link_data,
    is_null_or_empty,
    validate_link_request,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Stage:
    """One remote step: build the payload, send it, fold the result into the state."""
    name: str
    build: Callable[[LinkRequest, TransactionState], BaseModel]
    send: Callable[[Any], Awaitable[Any]]
    advance: Callable[[TransactionState, Any], TransactionState]


def extract_appointment_reference(response: AppointmentResult | None) -> str:
    """Primary ``resourceId``, falling back to the embedded record's reference."""
    if response is None:
        logger.error("Appointment API response is null.")
        raise RemoteServiceError("Failed to create appointment, response is null.")

    reference = response.resource_id
    if is_null_or_empty(reference) and response.appointment is not None:
        reference = response.appointment.reference

    if is_null_or_empty(reference):
        logger.error("Failed to get appointment reference from response")
        raise ValidationError("Failed to get appointment reference from response")
    return reference


def _appointment_created(state: TransactionState, response: AppointmentResult | None) -> TransactionState:
    reference = extract_appointment_reference(response)
    logger.info(f"Appointment created with reference: {reference}")
    return state.record_appointment(reference)


def _care_context_created(state: TransactionState, response: CareContextResult) -> TransactionState:
    if is_null_or_empty(response.care_context_reference):
        raise ValidationError("Failed to get care context reference from response")
    if is_null_or_empty(response.request_id):
        raise ValidationError("Failed to get request id from response")
    logger.info(f"Care context created with reference: {response.care_context_reference}")
    return state.record_care_context(response)


def _visit_records_updated(state: TransactionState, response: Any) -> TransactionState:
    logger.info("Visit records updated successfully")
    return state.record_visit_records()


def _care_context_linked(state: TransactionState, response: Any) -> TransactionState:
    logger.info("Care context linked successfully")
    return state.record_link()


STAGES: tuple[Stage, ...] = (
    Stage(
        name="appointment",
        build=lambda request, state: check_appointment(mapper.to_appointment(request)),
        send=lambda data: client.create_appointment(data),
        advance=_appointment_created,
    ),
    Stage(
        name="care-context",
        build=lambda request, state: check_care_context(mapper.to_care_context(request, state)),
        send=lambda data: client.create_care_context(data),
        advance=_care_context_created,
    ),
    Stage(
        name="visit-records",
        build=lambda request, state: check_consultation(mapper.to_consultation(request, state)),
        send=lambda data: client.update_visit_records(data),
        advance=_visit_records_updated,
    ),
    Stage(
        name="link",
        build=lambda request, state: check_link_data(mapper.to_link_data(request, state)),
        send=lambda data: client.link_care_context(data),
        advance=_care_context_linked,
    ),
)


async def _run_stage(stage: Stage, request: LinkRequest, state: TransactionState) -> TransactionState:
    logger.debug(f"Running {stage.name} stage")
    payload = stage.build(request, state)
    response = await stage.send(payload)
    return stage.advance(state, response)


async def link_health_document(request: LinkRequest | None, *, strict_link: bool = False) -> bool:
    """Run the linking pipeline for one request.

    Args:
        request: The document linking request.
        strict_link: When False (the default) a failure in the final link
            stage is logged and reported as ``False`` instead of raising.
            When True the link stage fails like every other stage.

    Returns:
        True once the care context is linked; False only for a tolerated
        link-stage failure.

    Raises:
        EhrApiError: status 400 with a "Validation failed: " message for bad
            input or unusable stage responses; status 500 for remote or
            unexpected failures, with the transaction state in the message
            and on ``transaction_state``.
    """
    state = TransactionState()
    *leading, final = STAGES
    current = "validation"

    try:
        validate_link_request(request)
        for stage in leading:
            current = stage.name
            state = await _run_stage(stage, request, state)

        current = final.name

        if strict_link:
            state = await _run_stage(final, request, state)
        else:
            # Non-strict mode: a link-stage failure becomes False and its
            # cause is only logged.
            try:
                state = await _run_stage(final, request, state)
            except Exception as exc:
                logger.error(
                    f"Care context linking failed at {final.name} stage, reporting False. "
                    f"Transaction state: {state}: {exc!r}"
                )
                return False
    except ValidationError as exc:
        failed = state.fail()
        logger.error(f"Validation error at {current} stage: {exc.message}")
        raise EhrApiError(f"Validation failed: {exc.message}", ErrorType.VALIDATION, failed) from exc
    except Exception as exc:
        failed = state.fail()
        logger.error(f"Error in linking health document at {current} stage. Transaction state: {failed}", exc_info=True)
        raise EhrApiError(
            f"Failed to link health document. Transaction state: {failed}",
            ErrorType.INTERNAL_SERVER_ERROR,
            failed,
        ) from exc

    logger.info("Health document successfully linked")
    return True
