import pytest
from pydantic import ValidationError as PydanticValidationError
from hie_linker.errors import EhrApiError, ErrorType, RemoteServiceError, ValidationError, error_type_for_status
from hie_linker.models import AppointmentResult, CareContextResult, LinkRequest, LinkingStatus, TransactionState


def test_fresh_state_renders_all_flags_false():
    assert str(TransactionState()) == (
        "TransactionState(appointmentCreated=false, careContextCreated=false, "
        "visitRecordsUpdated=false, careContextLinked=false)"
    )


def test_transitions_return_new_states():
    initial = TransactionState()
    created = initial.record_appointment("appt-1")

    assert initial.appointment_created is False
    assert initial.status is LinkingStatus.INITIATED
    assert created.appointment_created is True
    assert created.appointment_reference == "appt-1"
    assert created.status is LinkingStatus.APPOINTMENT_CREATED


def test_state_is_frozen():
    with pytest.raises(PydanticValidationError):
        TransactionState().appointment_created = True


def test_fail_remembers_where_it_stopped():
    state = (
        TransactionState()
        .record_appointment("appt-1")
        .record_care_context(CareContextResult(care_context_reference="cc-1", request_id="req-1"))
        .fail()
    )
    assert state.status is LinkingStatus.FAILED
    assert state.failed_at is LinkingStatus.CARE_CONTEXT_CREATED
    assert state.care_context_created is True
    assert state.fail() is state


def test_link_request_is_immutable():
    request = LinkRequest(patient_reference="a1b2c3d4e5f6a1b2c3d4e5f6a1b2c3d4")
    with pytest.raises(PydanticValidationError):
        request.patient_reference = "0f8fad5b-d9cb-469f-a165-70867728950e"


def test_appointment_result_reads_embedded_resource():
    result = AppointmentResult.model_validate({"resourceId": None, "resource": {"reference": "appt-9", "status": "booked"}})
    assert result.appointment.reference == "appt-9"


@pytest.mark.parametrize(
    "status, expected",
    [
        (400, ErrorType.VALIDATION),
        (401, ErrorType.AUTHENTICATION),
        (403, ErrorType.AUTHORIZATION),
        (404, ErrorType.NOT_FOUND),
        (409, ErrorType.CONFLICT),
        (418, ErrorType.INTERNAL_SERVER_ERROR),
        (503, ErrorType.INTERNAL_SERVER_ERROR),
    ],
)
def test_error_type_for_status(status, expected):
    assert error_type_for_status(status) is expected


def test_error_classification():
    assert ValidationError("bad").status_code == 400
    assert RemoteServiceError("down").status_code == 500
    assert EhrApiError("x", ErrorType.CONNECTION).status_code == 503
    assert isinstance(ValidationError("bad"), EhrApiError)


def test_error_types_are_all_failures():
    assert all(error_type.status_code >= 400 for error_type in ErrorType)
