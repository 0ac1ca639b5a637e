"""Error kinds raised by the friend approval workflow.

Each error carries the HTTP status code the API layer answers with, so
routers never translate them by hand.
"""


class WorkflowError(Exception):
    """Base class for all workflow errors."""

    status_code = 400

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class ValidationError(WorkflowError):
    """Malformed input, e.g. an invalid e-mail address."""

    status_code = 422


class NotFoundError(WorkflowError):
    """A referenced record does not exist."""

    status_code = 404

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection} record {record_id} not found")


class InvalidStateError(WorkflowError):
    """The record's current state does not permit the operation."""

    status_code = 409


class UnauthorizedError(WorkflowError):
    """The acting parent is not a party to the record."""

    status_code = 403


class DeliveryError(WorkflowError):
    """A notification could not be delivered. Never fatal to a transition."""

    status_code = 502

    def __init__(self, channel: str, detail: str):
        self.channel = channel
        super().__init__(f"{channel} delivery failed: {detail}")
