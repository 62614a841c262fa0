from app.core.exceptions import (
    AppError,
    ConflictError,
    GenerationCancelledError,
    SchedulerError,
    UnsatisfiableError,
    ValidationError,
)


def test_scheduler_error_structure():
    err = SchedulerError(message="Test error", details={"foo": "bar"})
    assert err.status_code == 400
    assert err.message == "Test error"
    assert err.details == {"foo": "bar"}
    assert isinstance(err, AppError)


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}


def test_engine_errors_share_the_scheduler_base():
    for err in (
        ValidationError("bad roster"),
        ConflictError("double reserve"),
        GenerationCancelledError(class_id="CSE-A", placed=1, required=3),
        UnsatisfiableError(subject_id="DS", class_id="CSE-A", placed=2, required=3),
    ):
        assert isinstance(err, SchedulerError)

    assert ValidationError("bad roster").status_code == 422
    assert ConflictError("double reserve").status_code == 500


def test_unsatisfiable_error_names_the_subject():
    err = UnsatisfiableError(subject_id="DS", class_id="CSE-A", placed=2, required=3)
    assert err.status_code == 409
    assert err.details == {
        "subject_id": "DS",
        "class_id": "CSE-A",
        "placed": 2,
        "required": 3,
        "reason": "no free slot/faculty/room combination",
    }
    assert "DS" in err.message
    assert "2/3" in err.message
