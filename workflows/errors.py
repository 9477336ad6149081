# ==========================================================
#                  EXCEPTIONS
# ==========================================================
class WorkflowError(Exception):
    """Base workflow exception"""
    status_code = 400

    def __init__(self, message, status_code=None, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        body = {"error": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(WorkflowError):
    status_code = 400


class NotFoundError(WorkflowError):
    status_code = 404


class InvalidTransitionError(WorkflowError):
    status_code = 409
