class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when required input is missing or invalid."""


class NotFoundError(DomainError):
    """Raised when a referenced shift or attendance row does not exist."""


class NoShiftToday(NotFoundError):
    def __init__(self, message: str = "Tidak Ada Shift Untuk Hari Ini"):
        super().__init__(message)


class RecordNotFound(NotFoundError):
    def __init__(self, message: str = "Data Absensi Tidak Ditemukan"):
        super().__init__(message)


class ConflictError(DomainError):
    """Raised on a duplicate check-in/check-out attempt."""


class AlreadyCheckedIn(ConflictError):
    def __init__(self, message: str = "Sudah Melakukan Absen Masuk Untuk Shift Ini"):
        super().__init__(message)


class AlreadyCheckedOut(ConflictError):
    def __init__(self, message: str = "Sudah Melakukan Absen Keluar"):
        super().__init__(message)


class InfrastructureError(DomainError):
    """Raised when the store or the notification dispatcher fails."""


class DispatchError(InfrastructureError):
    """Raised when a message cannot be delivered through an external channel."""
