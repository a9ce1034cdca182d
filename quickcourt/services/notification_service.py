from typing import Dict, Optional
from quickcourt.integrations import SendGridClient
from quickcourt.utils.logger import get_logger

logger = get_logger(__name__)

EVENT_OFFER_NEW = 'offer:new'
EVENT_OFFER_UPDATE = 'offer:update'
EVENT_BOOKING_UPDATE = 'booking:update'


def user_room(user_id) -> str:
    return f"user:{user_id}"


def role_room(role) -> str:
    return f"role:{getattr(role, 'value', role)}"


class PushNotifier:
    """
    Relays state changes to connected clients through socket rooms.

    Built once by the app factory and handed to the services that emit.
    Emission is best effort: a dropped push never rolls back the change
    that caused it.
    """

    def __init__(self, socketio=None):
        self.socketio = socketio
        self.closed = False

    def emit_to(self, room: str, event: str, payload: Dict):
        if self.socketio is None or self.closed:
            logger.debug(f"Push {event} to {room} skipped (relay not running)")
            return
        try:
            self.socketio.emit(event, payload, to=room)
        except Exception as e:
            logger.error(f"Error emitting {event} to {room}: {str(e)}")

    def offer_created(self, offer: Dict):
        self.emit_to(role_room('owner'), EVENT_OFFER_NEW, offer)
        self.emit_to(user_room(offer['userId']), EVENT_OFFER_NEW, offer)

    def offer_updated(self, offer: Dict, owner_id: Optional[int] = None):
        self.emit_to(user_room(offer['userId']), EVENT_OFFER_UPDATE, offer)
        if owner_id is not None and owner_id != offer['userId']:
            self.emit_to(user_room(owner_id), EVENT_OFFER_UPDATE, offer)

    def booking_updated(self, booking: Dict):
        self.emit_to(user_room(booking['userId']), EVENT_BOOKING_UPDATE, booking)

    def close(self):
        self.closed = True
        logger.info("Push relay closed")


class NotificationService:
    """Email notifications"""

    def __init__(self, mailer: SendGridClient = None):
        self.mailer = mailer or SendGridClient()

    def send_otp(self, email: str, name: str, otp: str):
        result = self.mailer.send_otp_email(email, name, otp)
        if result:
            logger.info(f"Sent verification code to {email}")
        return result
