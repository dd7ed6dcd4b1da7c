"""Unit tests for the push error taxonomy."""

import pytest

from beanroute.core.push.errors import (
    AuthRequiredError,
    NetworkError,
    NotConfiguredError,
    NotSupportedError,
    PermissionDeniedError,
    PushError,
    PushErrorCode,
    ServerRegistrationError,
    ServerUnregistrationError,
)


class TestPushErrorCode:
    @pytest.mark.parametrize(
        "code",
        [PushErrorCode.NOT_SUPPORTED, PushErrorCode.NOT_CONFIGURED, PushErrorCode.PERMISSION_DENIED],
    )
    def test_terminal_codes_are_not_recoverable(self, code: PushErrorCode) -> None:
        assert code.recoverable is False

    @pytest.mark.parametrize(
        "code",
        [
            PushErrorCode.SERVER_REGISTRATION_FAILED,
            PushErrorCode.SERVER_UNREGISTRATION_FAILED,
            PushErrorCode.NETWORK,
        ],
    )
    def test_server_and_network_codes_are_recoverable(self, code: PushErrorCode) -> None:
        assert code.recoverable is True


class TestPushError:
    def test_default_message(self) -> None:
        error = NotSupportedError()
        assert error.message == "Push notifications are not supported in this browser"
        assert str(error) == error.message

    def test_custom_message(self) -> None:
        error = NotConfiguredError("Push notifications not configured on server")
        assert error.message == "Push notifications not configured on server"

    def test_each_variant_has_its_own_code(self) -> None:
        errors: list[PushError] = [
            NotSupportedError(),
            NotConfiguredError(),
            PermissionDeniedError(),
            AuthRequiredError(),
            ServerRegistrationError(),
            ServerUnregistrationError(),
            NetworkError(),
        ]
        assert len({e.code for e in errors}) == len(errors)
        assert all(isinstance(e, PushError) for e in errors)

    def test_server_errors_keep_status_code(self) -> None:
        error = ServerRegistrationError("boom", status_code=500)
        assert error.status_code == 500
        assert error.retryable is True

    def test_network_error_keeps_cause(self) -> None:
        cause = ConnectionError("reset")
        error = NetworkError("GET /api/push/config failed", cause=cause)
        assert error.cause is cause
