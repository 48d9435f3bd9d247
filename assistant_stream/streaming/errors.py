from typing import Optional


class StreamError(Exception):
    pass


class UpstreamRunError(StreamError):
    """The upstream run failed, was cancelled or expired mid-stream."""

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message)
        self.status = status
