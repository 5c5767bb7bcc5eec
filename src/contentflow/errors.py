"""
Workflow error taxonomy.

Lifecycle services raise these; main.py renders them as
{"error": {"code", "message"}} with the status code carried by the class.
Parsing never raises any of them.
"""


class WorkflowError(Exception):
    status_code = 500
    code = "UNEXPECTED"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WorkflowError):
    status_code = 400
    code = "BAD_REQUEST"


class PermissionDeniedError(WorkflowError):
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(WorkflowError):
    status_code = 404
    code = "NOT_FOUND"


class InvalidStateError(WorkflowError):
    status_code = 409
    code = "INVALID_STATE"


class PersistenceError(WorkflowError):
    status_code = 500
    code = "DB_ERROR"
