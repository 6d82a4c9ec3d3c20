import pytest

from booking_sync.errors import AccessDeniedError, CrmError, SarasError, SarasErrorKind
from booking_sync.sync.policy import ErrorPolicy, SyncAction, classify_error


@pytest.mark.parametrize(
    "error, expected",
    [
        (AccessDeniedError("evil.example.com", 443), SyncAction.ABORT),
        (SarasError("error", status=500), SyncAction.CONTINUE),
        (SarasError("dup", status=400, saras_kind=SarasErrorKind.DUPLICATE), SyncAction.CONTINUE),
        (CrmError("bad request", status=400), SyncAction.CONTINUE),
        (CrmError("server error", status=500), SyncAction.CONTINUE),
        (CrmError("unauthorised", status=401), SyncAction.ABORT),
        (CrmError("forbidden", status=403), SyncAction.ABORT),
        (CrmError("not found", status=404), SyncAction.ABORT),
        (CrmError("unavailable", status=503), SyncAction.ABORT),
        (CrmError("no response"), SyncAction.ABORT),
        (ValueError("unexpected"), SyncAction.ABORT),
    ],
)
def test_classify_error(error, expected):
    assert classify_error(error) is expected


def test_handle_logs_warning_and_continues(mock_logger):
    policy = ErrorPolicy(mock_logger)

    action = policy.handle(CrmError("bad request", status=400), booking_product_id="001")

    assert action is SyncAction.CONTINUE
    mock_logger.warning.assert_called_once()
    kwargs = mock_logger.warning.call_args.kwargs
    assert kwargs["status"] == 400
    assert kwargs["error_kind"] == "crm"
    assert kwargs["booking_product_id"] == "001"
    mock_logger.critical.assert_not_called()


def test_handle_logs_critical_and_reraises(mock_logger):
    policy = ErrorPolicy(mock_logger)
    error = CrmError("forbidden", status=403)

    with pytest.raises(CrmError) as exc_info:
        policy.handle(error)

    assert exc_info.value is error
    mock_logger.critical.assert_called_once()
    mock_logger.warning.assert_not_called()


def test_handle_reraises_unexpected_errors_unchanged(mock_logger):
    policy = ErrorPolicy(mock_logger)

    with pytest.raises(KeyError):
        policy.handle(KeyError("missing"))

    assert mock_logger.critical.call_args.kwargs["error_type"] == "KeyError"
