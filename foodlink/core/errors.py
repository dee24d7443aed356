from typing import Dict


class FoodLinkError(Exception):
    status_code = 400

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail


class FormValidationError(FoodLinkError):
    """Field-by-field form errors; nothing was persisted."""
    status_code = 422

    def __init__(self, errors: Dict[str, str]):
        super().__init__("Invalid form data")
        self.errors = dict(errors)


class AuthenticationRequired(FoodLinkError):
    status_code = 401


class PermissionDenied(FoodLinkError):
    status_code = 403


class NotFound(FoodLinkError):
    status_code = 404


class InvalidTransition(FoodLinkError):
    status_code = 409


class AlreadyTaken(InvalidTransition):
    """Conditional accept matched no row: someone else got there first."""


class EmailTaken(FoodLinkError):
    status_code = 409


class BackendUnavailable(FoodLinkError):
    status_code = 503


# client-side lookup: error code sent by the API -> exception type
BY_CODE = {
    cls.__name__: cls
    for cls in (
        AuthenticationRequired, PermissionDenied, NotFound,
        InvalidTransition, AlreadyTaken, EmailTaken, BackendUnavailable,
    )
}
