from flask import current_app
from quickcourt.integrations import PaymentGateway
from quickcourt.services.admin_service import AdminService
from quickcourt.services.auth_service import AuthService
from quickcourt.services.booking_service import BookingService
from quickcourt.services.coupon_service import CouponService
from quickcourt.services.facility_service import FacilityService
from quickcourt.services.notification_service import NotificationService, PushNotifier
from quickcourt.services.offer_service import OfferService
from quickcourt.services.review_service import ReviewService
from quickcourt.services.slot_service import SlotService
from quickcourt.services.stats_service import StatsService

EXTENSION_KEY = 'quickcourt'


class ServiceRegistry:
    """The services of one app instance, wired to its payment gateway and push relay"""

    def __init__(self, payment_gateway: PaymentGateway, notifier: PushNotifier,
                 notification_service: NotificationService = None):
        self.payment_gateway = payment_gateway
        self.notifier = notifier
        self.notifications = notification_service or NotificationService()

        self.slots = SlotService()
        self.facilities = FacilityService()
        self.auth = AuthService(self.notifications)
        self.bookings = BookingService(payment_gateway, notifier, self.slots)
        self.offers = OfferService(notifier)
        self.reviews = ReviewService()
        self.coupons = CouponService()
        self.admin = AdminService()
        self.stats = StatsService()

    def close(self):
        self.bookings.stop_scheduler()
        self.notifier.close()


def get_services() -> ServiceRegistry:
    return current_app.extensions[EXTENSION_KEY]
