from fastapi import status
from libs.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


# Error code -> HTTP status for failures the caller can act on
CLIENT_ERROR_STATUS = {
    "INVALID_SIGNATURE": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "KIND_MISMATCH": status.HTTP_401_UNAUTHORIZED,
    "SESSION_INVALID": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_REUSE_DETECTED": status.HTTP_401_UNAUTHORIZED,
    "REFRESH_IN_PROGRESS": status.HTTP_409_CONFLICT,
    "CONCURRENT_MODIFICATION": status.HTTP_409_CONFLICT,
    "INVALID_PAGINATION": status.HTTP_422_UNPROCESSABLE_ENTITY,
}

SERVER_ERROR_STATUS = {
    "STORE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def raise_for_error(error: Error):
    """Raise the ClientError or ServerError matching a use case error code."""
    if error.code in CLIENT_ERROR_STATUS:
        raise ClientError(error, status_code=CLIENT_ERROR_STATUS[error.code])
    raise ServerError(
        error,
        status_code=SERVER_ERROR_STATUS.get(
            error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
    )
