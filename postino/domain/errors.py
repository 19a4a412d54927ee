# /postino/domain/errors.py
from __future__ import annotations


class ClientInputError(ValueError):
    """Request rejected before any upstream call is made."""


class UpstreamHTTPError(Exception):
    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"API Error {status}: {body}")
        self.status = status
        self.body = body
