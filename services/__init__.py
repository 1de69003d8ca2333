from .errors import BookingError, InvalidInput, NotFound, Conflict, Unavailable
from .store import BookingStore, SqlAlchemyBookingStore
from .booking_service import BookingService, BookingPatch, CancelResult
