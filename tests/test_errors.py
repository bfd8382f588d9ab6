from authsession.errors.internal import (
    DoubleRetryBlocked,
    InternalError,
    SessionExpired,
    Unauthorized,
)
from authsession.http.models import ApiResponse


def test_internal_error_copies_data():
    data = {"reason": "x"}
    err = InternalError("boom", data=data)
    data["reason"] = "changed"
    assert err.data == {"reason": "x"}
    assert str(err) == "boom"


def test_double_retry_blocked_carries_response():
    resp = ApiResponse(401, {"message": "Unauthorized"})
    err = DoubleRetryBlocked("GET x unauthorized after refresh", response=resp)
    assert isinstance(err, Unauthorized)
    assert err.response is resp
    assert err.data == {"status": 401}


def test_session_expired_is_internal_error():
    err = SessionExpired("Session expired", data={"reason": "Refresh token expired"})
    assert isinstance(err, InternalError)
    assert err.data["reason"] == "Refresh token expired"
