import pytest
from datetime import datetime
from quickcourt.database import get_db, DatabaseManager
from quickcourt.integrations import MockPaymentGateway, PaymentGateway
from quickcourt.integrations.stripe_client import PaymentIntentResult
from quickcourt.models import Booking, TimeSlot, User
from quickcourt.models.booking import BookingStatus
from quickcourt.services.booking_service import BookingService
from quickcourt.utils.errors import ForbiddenError, NotFoundError, PaymentError, SlotUnavailableError, ValidationError

DATE = '2025-06-01'


class DecliningGateway(PaymentGateway):
    """Issues intents that never succeed"""
    name = 'declining'

    def create_intent(self, amount, currency='inr', metadata=None):
        return PaymentIntentResult(id='pi_declined', status='requires_payment_method',
                                   client_secret='cs_declined', amount=int(amount * 100))

    def confirm_intent(self, payment_intent_id):
        return PaymentIntentResult(id=payment_intent_id, status='requires_payment_method')


class FailingGateway(PaymentGateway):
    name = 'failing'

    def create_intent(self, amount, currency='inr', metadata=None):
        raise PaymentError('Failed to create payment intent: provider unavailable', status_code=500)


class RacingGateway(MockPaymentGateway):
    """Another player's booking lands on the window while the intent is being created"""

    def __init__(self, seed):
        self.seed = seed
        self.cancelled = []

    def create_intent(self, amount, currency='inr', metadata=None):
        DatabaseManager(Booking).create(
            user_id=self.seed['other_owner'].id, facility_id=self.seed['facility'].id,
            court_id=self.seed['court'].id, date_iso=DATE, start='10:00', end='11:00',
            price=500, base_price=500, status=BookingStatus.PENDING
        )
        return super().create_intent(amount, currency, metadata)

    def cancel_intent(self, payment_intent_id):
        self.cancelled.append(payment_intent_id)


class RecordingNotifier:
    def __init__(self):
        self.bookings = []

    def booking_updated(self, booking):
        self.bookings.append(booking)


@pytest.fixture
def booking_service():
    return BookingService(MockPaymentGateway(), RecordingNotifier())


def get_booking(booking_id):
    return DatabaseManager(Booking).get(booking_id)


def get_slot(court_id, start, end):
    with get_db() as db:
        return db.query(TimeSlot).filter_by(court_id=court_id, date_iso=DATE, start=start, end=end).first()


def pending_payload(court, **overrides):
    payload = {'courtId': court.id, 'dateISO': DATE, 'startTime': '10:00', 'duration': 1, 'amount': 500}
    payload.update(overrides)
    return payload


class TestPaidBookingFlow:
    """Test create-pending then verify-payment"""

    def test_create_pending_then_verify(self, seed, booking_service):
        player, court = seed['player'], seed['court']

        created = booking_service.create_pending(player.id, pending_payload(court))

        assert created['paymentIntentId'].startswith('pi_mock_')
        assert created['clientSecret'] == f"cs_test_{created['paymentIntentId']}"
        booking = created['booking']
        assert booking['status'] == 'pending'
        assert booking['end'] == '11:00'
        assert get_slot(court.id, '10:00', '11:00') is None

        confirmed = booking_service.verify_payment(player.id, booking['_id'], created['paymentIntentId'])

        assert confirmed['status'] == 'confirmed'
        assert confirmed['confirmedAt'] is not None
        assert confirmed['payment']['status'] == 'succeeded'
        slot = get_slot(court.id, '10:00', '11:00')
        assert slot.is_booked is True
        assert slot.price_snapshot == 500
        assert booking_service.notifier.bookings[-1]['_id'] == booking['_id']

    def test_multi_hour_booking_books_every_window(self, seed, booking_service):
        player, court = seed['player'], seed['court']
        created = booking_service.create_pending(player.id, pending_payload(court, duration=2, amount=900))
        booking_service.verify_payment(player.id, created['booking']['_id'])

        assert created['booking']['end'] == '12:00'
        assert get_slot(court.id, '10:00', '11:00').price_snapshot == 450
        assert get_slot(court.id, '11:00', '12:00').is_booked is True

    def test_overlapping_pending_request_rejected(self, seed, booking_service):
        player, court = seed['player'], seed['court']
        booking_service.create_pending(player.id, pending_payload(court, duration=2))

        with pytest.raises(SlotUnavailableError):
            booking_service.create_pending(player.id, pending_payload(court, startTime='11:00'))

    def test_blocked_window_rejected(self, seed, booking_service):
        court = seed['court']
        DatabaseManager(TimeSlot).create(court_id=court.id, date_iso=DATE, start='10:00', end='11:00',
                                         is_blocked=True)

        with pytest.raises(SlotUnavailableError):
            booking_service.create_pending(seed['player'].id, pending_payload(court))

    def test_booking_past_closing_time_rejected(self, seed, booking_service):
        with pytest.raises(ValidationError) as exc_info:
            booking_service.create_pending(seed['player'].id, pending_payload(seed['court'], startTime='21:00',
                                                                              duration=5, amount=None))

        assert exc_info.value.message == 'Booking must end by 23:00'
        assert DatabaseManager(Booking).count() == 0

    def test_last_hours_of_the_day_priced_by_duration(self, seed, booking_service):
        created = booking_service.create_pending(seed['player'].id, pending_payload(
            seed['court'], startTime='21:00', duration=2, amount=None
        ))

        assert created['booking']['end'] == '23:00'
        assert created['booking']['price'] == 1000

    @pytest.mark.parametrize('duration', [0, -1, 'two', 1.5])
    def test_invalid_duration_rejected(self, seed, booking_service, duration):
        with pytest.raises(ValidationError):
            booking_service.create_pending(seed['player'].id, pending_payload(seed['court'], duration=duration))

        assert DatabaseManager(Booking).count() == 0

    def test_intent_cancelled_when_window_taken_meanwhile(self, seed):
        gateway = RacingGateway(seed)
        service = BookingService(gateway, RecordingNotifier())

        with pytest.raises(SlotUnavailableError):
            service.create_pending(seed['player'].id, pending_payload(seed['court']))

        assert len(gateway.cancelled) == 1
        assert gateway.cancelled[0].startswith('pi_mock_')
        assert DatabaseManager(Booking).count() == 1

    def test_unknown_court_rejected(self, seed, booking_service):
        with pytest.raises(NotFoundError):
            booking_service.create_pending(seed['player'].id, pending_payload(seed['court'], courtId=9999))

    def test_gateway_failure_creates_nothing(self, seed):
        service = BookingService(FailingGateway(), RecordingNotifier())

        with pytest.raises(PaymentError) as exc_info:
            service.create_pending(seed['player'].id, pending_payload(seed['court']))

        assert exc_info.value.message.startswith('Failed to create payment intent')
        assert DatabaseManager(Booking).count() == 0

    def test_unsuccessful_payment_leaves_booking_pending(self, seed):
        service = BookingService(DecliningGateway(), RecordingNotifier())
        player, court = seed['player'], seed['court']
        created = service.create_pending(player.id, pending_payload(court))

        with pytest.raises(PaymentError) as exc_info:
            service.verify_payment(player.id, created['booking']['_id'])

        assert exc_info.value.message == 'Payment not successful'
        assert get_booking(created['booking']['_id']).status == BookingStatus.PENDING
        assert get_slot(court.id, '10:00', '11:00') is None

    def test_verify_someone_elses_booking_not_found(self, seed, booking_service):
        created = booking_service.create_pending(seed['player'].id, pending_payload(seed['court']))

        with pytest.raises(NotFoundError):
            booking_service.verify_payment(seed['owner'].id, created['booking']['_id'])

    def test_verify_twice_not_found(self, seed, booking_service):
        player = seed['player']
        created = booking_service.create_pending(player.id, pending_payload(seed['court']))
        booking_service.verify_payment(player.id, created['booking']['_id'])

        with pytest.raises(NotFoundError):
            booking_service.verify_payment(player.id, created['booking']['_id'])


class TestSimulatedBooking:
    """Test immediate bookings with simulated payment"""

    def test_create_simulated(self, seed, booking_service):
        court = seed['court']
        booking = booking_service.create_simulated(seed['player'].id, {
            'facilityId': seed['facility'].id, 'courtId': court.id,
            'dateISO': DATE, 'start': '18:00', 'end': '19:00', 'price': 500
        })

        assert booking['status'] == 'confirmed'
        assert booking['payment']['method'] == 'simulated'
        assert booking['payment']['txnId'].startswith('SIM-')
        assert get_slot(court.id, '18:00', '19:00').is_booked is True

    def test_simulated_booking_of_booked_slot_fails(self, seed, booking_service):
        payload = {'courtId': seed['court'].id, 'dateISO': DATE, 'start': '18:00', 'end': '19:00', 'price': 500}
        booking_service.create_simulated(seed['player'].id, payload)

        with pytest.raises(SlotUnavailableError):
            booking_service.create_simulated(seed['owner'].id, payload)

        assert DatabaseManager(Booking).count() == 1


class TestCancel:
    """Test cancellation rules"""

    def confirmed_booking(self, seed, booking_service):
        created = booking_service.create_pending(seed['player'].id, pending_payload(seed['court']))
        return booking_service.verify_payment(seed['player'].id, created['booking']['_id'])

    def test_cancel_confirmed_booking(self, seed, booking_service):
        booking = self.confirmed_booking(seed, booking_service)

        cancelled = booking_service.cancel(seed['player'].id, booking['_id'])

        assert cancelled['status'] == 'cancelled'
        assert get_slot(seed['court'].id, '10:00', '11:00').is_booked is False
        player = DatabaseManager(User).get(seed['player'].id)
        assert player.cancellations == 1
        assert player.reliability_score == 70

    def test_cancel_pending_booking_fails(self, seed, booking_service):
        created = booking_service.create_pending(seed['player'].id, pending_payload(seed['court']))

        with pytest.raises(ValidationError):
            booking_service.cancel(seed['player'].id, created['booking']['_id'])

        assert get_booking(created['booking']['_id']).status == BookingStatus.PENDING
        assert DatabaseManager(User).get(seed['player'].id).cancellations == 0

    def test_cancel_twice_fails(self, seed, booking_service):
        booking = self.confirmed_booking(seed, booking_service)
        booking_service.cancel(seed['player'].id, booking['_id'])

        with pytest.raises(ValidationError):
            booking_service.cancel(seed['player'].id, booking['_id'])

        assert DatabaseManager(User).get(seed['player'].id).reliability_score == 70

    def test_cancel_other_users_booking_forbidden(self, seed, booking_service):
        booking = self.confirmed_booking(seed, booking_service)

        with pytest.raises(ForbiddenError):
            booking_service.cancel(seed['owner'].id, booking['_id'])

        assert get_booking(booking['_id']).status == BookingStatus.CONFIRMED

    def test_cancelled_window_can_be_booked_again(self, seed, booking_service):
        booking = self.confirmed_booking(seed, booking_service)
        booking_service.cancel(seed['player'].id, booking['_id'])

        again = self.confirmed_booking(seed, booking_service)
        assert again['status'] == 'confirmed'


class TestCompletion:
    """Test the scheduled completion job"""

    def test_past_confirmed_bookings_complete(self, seed, booking_service):
        created = booking_service.create_pending(seed['player'].id, pending_payload(seed['court']))
        booking_service.verify_payment(seed['player'].id, created['booking']['_id'])

        completed = booking_service.complete_past_bookings(now=datetime(2025, 6, 1, 12, 0))

        assert completed == 1
        assert get_booking(created['booking']['_id']).status == BookingStatus.COMPLETED
        assert DatabaseManager(User).get(seed['player'].id).reliability_score == 82

    def test_running_bookings_stay_confirmed(self, seed, booking_service):
        created = booking_service.create_pending(seed['player'].id, pending_payload(seed['court']))
        booking_service.verify_payment(seed['player'].id, created['booking']['_id'])

        assert booking_service.complete_past_bookings(now=datetime(2025, 6, 1, 10, 30)) == 0
        assert get_booking(created['booking']['_id']).status == BookingStatus.CONFIRMED

    def test_pending_bookings_never_complete(self, seed, booking_service):
        booking_service.create_pending(seed['player'].id, pending_payload(seed['court']))

        assert booking_service.complete_past_bookings(now=datetime(2025, 7, 1)) == 0


class TestListing:
    """Test booking listings"""

    def test_list_for_user_newest_first(self, seed, booking_service):
        player, court = seed['player'], seed['court']
        first = booking_service.create_pending(player.id, pending_payload(court))
        second = booking_service.create_pending(player.id, pending_payload(court, startTime='15:00'))

        bookings = booking_service.list_for_user(player.id)

        assert [b['_id'] for b in bookings] == [second['booking']['_id'], first['booking']['_id']]
        assert bookings[0]['court']['name'] == 'Court 1'

    def test_list_for_owner_filters_by_status(self, seed, booking_service):
        player, court = seed['player'], seed['court']
        created = booking_service.create_pending(player.id, pending_payload(court))
        booking_service.verify_payment(player.id, created['booking']['_id'])
        booking_service.create_pending(player.id, pending_payload(court, startTime='15:00'))

        owner_actor = {'user_id': seed['owner'].id, 'role': 'owner'}
        everything = booking_service.list_for_owner(owner_actor, None, {}, 1, 20)
        confirmed = booking_service.list_for_owner(owner_actor, None, {'status': 'confirmed'}, 1, 20)

        assert everything['total'] == 2
        assert confirmed['total'] == 1
        assert confirmed['data'][0]['user']['email'] == 'player@test.com'

    def test_owner_cannot_list_other_owners_bookings(self, seed, booking_service):
        owner_actor = {'user_id': seed['other_owner'].id, 'role': 'owner'}

        with pytest.raises(ForbiddenError):
            booking_service.list_for_owner(owner_actor, seed['owner'].id, {}, 1, 20)
