# entryboard/services/test_error_service.py
from entryboard.core.errors import RemoteWriteFailed
from entryboard.services.error_service import ErrorService


def test_report_keeps_recent_errors():
    service = ErrorService(max_errors=2)
    errors = [RemoteWriteFailed(str(i)) for i in range(3)]

    for error in errors:
        service.report(error)

    assert service.errors == (errors[1], errors[2])
    assert service.last_error is errors[2]

    service.clear()
    assert service.errors == ()
    assert service.last_error is None
