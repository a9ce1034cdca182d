from .user import User, OwnerProfile
from .facility import Facility, Court
from .slot import TimeSlot
from .booking import Booking
from .offer import Offer
from .review import Review
from .pricing import Coupon, PriceEvent

__all__ = [
    'User', 'OwnerProfile', 'Facility', 'Court', 'TimeSlot',
    'Booking', 'Offer', 'Review', 'Coupon', 'PriceEvent'
]
