class CalendarSyncError(Exception):
    """Base class for everything a scrape/upload run can fail with."""


class InvalidURL(CalendarSyncError):
    pass


class NetworkError(CalendarSyncError):
    pass


class ParsingError(CalendarSyncError):
    pass


class NoData(CalendarSyncError):
    pass


class UploadError(CalendarSyncError):
    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"upload rejected: HTTP {status_code}: {body[:200]}")
