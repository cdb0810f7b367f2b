"""Error taxonomy shared by the scheduling engine and the commit services.

An empty search result is not an error: it is returned as a normal response
carrying a ``no_availability_reason``.
"""


class SchedulingError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SchedulingError):
    """Malformed time range, non-positive duration, bad search parameters."""
    status_code = 422


class NotFoundError(SchedulingError):
    """Unknown (or other-business) job, worker or business."""
    status_code = 404


class UpstreamReadError(SchedulingError):
    """The backing store could not be read; availability is unknown, not 'no'."""
    status_code = 503


class SlotUnavailableError(SchedulingError):
    """A commit re-check found the slot taken since it was proposed."""
    status_code = 409
