"""
Domain errors raised by the queue core.
Each carries the HTTP status the API layer reports it with (see app.main).
"""


class QueueError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidService(QueueError):
    status_code = 400

    def __init__(self, raw_name):
        super().__init__(f"Unknown service '{raw_name}'")
        self.raw_name = raw_name


class NoCustomerWaiting(QueueError):
    status_code = 404

    def __init__(self, service: str):
        super().__init__(f"No customer waiting for {service}")
        self.service = service


class NothingCalledYet(QueueError):
    status_code = 404

    def __init__(self, service: str):
        super().__init__(f"No number has been called yet for {service}")
        self.service = service


class TicketLimitReached(QueueError):
    status_code = 409

    def __init__(self, service: str, limit: int):
        super().__init__(f"Daily ticket limit ({limit}) reached for {service}")
        self.service = service
        self.limit = limit


class StorageUnavailable(QueueError):
    status_code = 500


class ConfirmationRequired(QueueError):
    status_code = 400

    def __init__(self):
        super().__init__("Wipe requires an exact confirmation token")
