"""Domain exceptions raised by services and mapped to HTTP errors by routers."""


class NotAuthorizedError(ValueError):
    """The user may not perform this operation on the task or entry."""


class DurationValidationError(ValueError):
    """A duration value is negative, not finite, over a day or unparseable."""


class PersistenceError(RuntimeError):
    """Base class for database failures a service reports itself.

    Raw ``PyMongoError`` from the driver is not wrapped; the app maps both to
    502 with the same handler.
    """


class ReconciliationError(PersistenceError):
    """A timesheet edit stopped part way through.

    Carries the report re-aggregated from whatever state was reached so the
    caller can show it alongside the error.
    """

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report
