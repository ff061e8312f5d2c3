# salonbook/errors.py
"""Booking error taxonomy.

Every error carries the HTTP status it maps to and a stable machine ``code``
so a client can tell a lost race (re-fetch availability and pick again) apart
from a request that will never succeed.
"""


class BookingError(Exception):
    status_code = 400
    code = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError, ValueError):
    # also a ValueError so request-schema validators turn it into a 422
    status_code = 422
    code = "validation_error"


class InvalidInterval(ValidationError):
    code = "invalid_interval"


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"


class ReservationNotFound(NotFoundError):
    code = "reservation_not_found"

    def __init__(self, reservation_id: int):
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class InactiveEntityError(BookingError):
    status_code = 409
    code = "inactive_entity"


class ServiceInactive(InactiveEntityError):
    code = "service_inactive"


class StaffInactive(InactiveEntityError):
    code = "staff_inactive"


class StaffNotAssignedToService(BookingError):
    status_code = 422
    code = "staff_not_assigned_to_service"


class ConflictError(BookingError):
    status_code = 409
    code = "conflict"


class SlotNoLongerAvailable(ConflictError):
    code = "slot_no_longer_available"

    def __init__(self, message: str = "That time is no longer available, please pick another slot"):
        super().__init__(message)


class ForbiddenTransitionError(BookingError):
    status_code = 403
    code = "forbidden_transition"


class Forbidden(ForbiddenTransitionError):
    code = "forbidden"


class InvalidTransition(ForbiddenTransitionError):
    status_code = 409
    code = "invalid_transition"
