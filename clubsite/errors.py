"""Error taxonomy shared by the knowledge and feed layers."""

from __future__ import annotations


class ClubSiteError(Exception):
    """Base class for all clubsite errors."""

    status_code = 500

    def __init__(self, reason: str = ""):
        super().__init__(reason)
        self.reason = reason


class InvalidRequest(ClubSiteError):
    """Bad feed name, blank question, unsupported method."""

    status_code = 400


class Unauthorized(ClubSiteError):
    """Missing or mismatched admin token."""

    status_code = 401


class NotFound(ClubSiteError):
    status_code = 404


class UpstreamError(ClubSiteError):
    """Generative backend, remote store, or social API failed.

    Always caught before reaching an HTTP caller.
    """

    status_code = 502
