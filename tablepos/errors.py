class POSError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(POSError):
    status_code = 404


class InvalidArgument(POSError):
    status_code = 400


class Conflict(POSError):
    status_code = 409
