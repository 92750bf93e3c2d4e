"""
Error taxonomy shared by the gateway, the services and the HTTP layer.

Every error carries the HTTP status it maps to; the API renders them all as
``{"error": message}``.
"""


class ReadingNookError(Exception):
    status_code = 500

    def __init__(self, message: str = "서버 오류가 발생했습니다."):
        super().__init__(message)
        self.message = message


class Unauthenticated(ReadingNookError):
    status_code = 401

    def __init__(self, message: str = "로그인이 필요합니다."):
        super().__init__(message)


class Forbidden(ReadingNookError):
    status_code = 403

    def __init__(self, message: str = "권한이 없습니다."):
        super().__init__(message)


class InvalidArgument(ReadingNookError):
    status_code = 400


class NotFound(ReadingNookError):
    status_code = 404


class UpstreamUnavailable(ReadingNookError):
    """The external catalog could not be reached or answered with an error."""
    status_code = 502


class DependencyFailed(ReadingNookError):
    """A prerequisite write (e.g. the profile upsert) failed."""
    status_code = 500


class StoreError(ReadingNookError):
    status_code = 500


class ConfigurationError(ReadingNookError):
    status_code = 500
