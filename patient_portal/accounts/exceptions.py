from ..exceptions import ConflictException, NotFoundException


class PatientNotFoundException(NotFoundException):
    default_detail = "Patient not found"


class AlreadyInactiveException(ConflictException):
    """Raised when inactivating an account that is already inactive."""
    default_detail = "Patient account is already inactive"
