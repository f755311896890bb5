"""Error taxonomy shared by the resolver, the catalog and the web layer."""


class SafeTubeError(Exception):
    """Base error. ``status_code`` is the HTTP status the web layer answers with."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class InvalidInputError(SafeTubeError):
    """Malformed or unclassifiable URL, missing required field."""

    status_code = 400


class NotFoundError(SafeTubeError):
    """Video, channel or playlist absent (or a channel without uploads)."""

    status_code = 404


class UpstreamError(SafeTubeError):
    """Network, quota or auth failure reported by the metadata provider."""

    status_code = 500
