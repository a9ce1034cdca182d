import logging
from unittest.mock import patch
from quickcourt.database import DatabaseManager
from quickcourt.integrations import MockPaymentGateway
from quickcourt.main import create_app
from quickcourt.models import Facility
from quickcourt.models.facility import FacilityStatus
from conftest import auth_header

DATE = '2025-06-01'


def add_facility(owner, name, lat, lng, price, status=FacilityStatus.APPROVED, sports=None):
    return DatabaseManager(Facility).create(
        owner_id=owner.id, name=name, address='Somewhere', latitude=lat, longitude=lng,
        sports=sports or ['tennis'], status=status, starting_price_per_hour=price
    )


class TestHealth:

    def test_health(self, client):
        response = client.get('/')

        assert response.status_code == 200
        assert response.get_json() == {'ok': True, 'service': 'quickcourt', 'payments': 'mock'}

    def test_requests_are_logged(self, client, caplog):
        caplog.set_level(logging.INFO, logger='quickcourt.access')

        client.get('/api/facilities?page=1')

        lines = [r.getMessage() for r in caplog.records if r.name == 'quickcourt.access']
        assert lines and lines[-1].startswith('GET /api/facilities?page=1 200')

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/nothing-here')

        assert response.status_code == 404
        assert 'error' in response.get_json()

    def test_unexpected_error_hides_details(self, app):
        def broken():
            raise RuntimeError('(sqlite3.IntegrityError) [SQL: INSERT INTO offers ...]')
        app.add_url_rule('/api/broken', 'broken', broken)

        response = app.test_client().get('/api/broken')

        assert response.status_code == 500
        assert response.get_json() == {'error': 'Internal server error'}

    def test_app_does_not_register_exit_hooks(self, database):
        with patch('atexit.register') as register:
            app = create_app('testing', payment_gateway=MockPaymentGateway())
        services = app.extensions['quickcourt']
        services.close()

        assert services.close not in [c.args[0] for c in register.call_args_list]


class TestFacilities:
    """Test facility discovery"""

    def test_only_approved_listed(self, client, seed):
        add_facility(seed['owner'], 'Pending Park', 22.7, 75.8, 300, status=FacilityStatus.PENDING)

        body = client.get('/api/facilities').get_json()

        assert body['total'] == 1
        assert body['page'] == 1
        assert body['data'][0]['name'] == 'Galaxy Sports Arena'

    def test_include_all(self, client, seed):
        add_facility(seed['owner'], 'Pending Park', 22.7, 75.8, 300, status=FacilityStatus.PENDING)

        assert client.get('/api/facilities?includeAll=true').get_json()['total'] == 2

    def test_filter_by_sport_and_price(self, client, seed):
        add_facility(seed['owner'], 'Tennis Hub', 22.7, 75.8, 900)

        tennis = client.get('/api/facilities?sport=tennis').get_json()
        cheap = client.get('/api/facilities?maxPrice=600').get_json()

        assert [f['name'] for f in tennis['data']] == ['Tennis Hub']
        assert [f['name'] for f in cheap['data']] == ['Galaxy Sports Arena']

    def test_radius_search_sorted_by_distance(self, client, seed):
        add_facility(seed['owner'], 'Near Court', 22.721, 75.861, 400)
        add_facility(seed['owner'], 'Far Court', 28.61, 77.20, 400)

        body = client.get('/api/facilities?lat=22.72&lng=75.86&radius=5').get_json()

        assert [f['name'] for f in body['data']] == ['Galaxy Sports Arena', 'Near Court']
        assert body['data'][0]['distanceKm'] < body['data'][1]['distanceKm']

    def test_pagination(self, client, seed):
        for i in range(3):
            add_facility(seed['owner'], f'Extra {i}', 22.7, 75.8, 400)

        body = client.get('/api/facilities?page=2&limit=3').get_json()

        assert body['total'] == 4
        assert len(body['data']) == 1

    def test_bad_number_is_400(self, client, seed):
        response = client.get('/api/facilities?minPrice=cheap')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'minPrice must be a number'}

    def test_missing_facility_404(self, client, seed):
        response = client.get('/api/facilities/9999')

        assert response.status_code == 404
        assert response.get_json() == {'error': 'Facility not found'}

    def test_other_owner_cannot_update(self, client, seed):
        response = client.put(f"/api/facilities/{seed['facility'].id}", json={'name': 'Taken'},
                              headers=auth_header(seed['other_owner']))
        assert response.status_code == 403

    def test_admin_approves_facility(self, client, seed):
        pending = add_facility(seed['owner'], 'Pending Park', 22.7, 75.8, 300, status=FacilityStatus.PENDING)
        headers = auth_header(seed['admin'])

        queue = client.get('/api/admin/facilities/pending', headers=headers).get_json()
        assert [f['_id'] for f in queue] == [pending.id]

        response = client.put(f'/api/admin/facilities/{pending.id}/approve', headers=headers)
        assert response.get_json()['status'] == 'approved'
        assert client.get('/api/facilities').get_json()['total'] == 2


class TestCourts:
    """Test court management"""

    def test_create_update_delete_court(self, client, seed):
        headers = auth_header(seed['owner'])
        created = client.post('/api/courts', json={
            'facilityId': seed['facility'].id, 'name': 'Court 2', 'sport': 'badminton', 'pricePerHour': 400
        }, headers=headers)
        assert created.status_code == 201
        court_id = created.get_json()['_id']

        client.put(f'/api/courts/{court_id}', json={'pricePerHour': 450}, headers=headers)
        history = client.get(f'/api/courts/{court_id}/price-history').get_json()['data']
        assert [event['price'] for event in history] == [400, 450]

        assert client.get(f"/api/facilities/{seed['facility'].id}").get_json()['startingPricePerHour'] == 450

        deleted = client.delete(f'/api/courts/{court_id}', headers=headers)
        assert deleted.get_json()['data']['isActive'] is False

    def test_player_cannot_create_court(self, client, seed):
        response = client.post('/api/courts', json={'facilityId': seed['facility'].id, 'name': 'X'},
                               headers=auth_header(seed['player']))
        assert response.status_code == 403


class TestSlotRoutes:
    """Test owner slot management over HTTP"""

    def test_block_and_view_availability(self, client, seed):
        headers = auth_header(seed['owner'])
        court_id = seed['court'].id

        blocked = client.post('/api/slots/block', json={
            'courtId': court_id, 'dateISO': DATE, 'start': '07:00', 'end': '08:00'
        }, headers=headers)
        assert blocked.status_code == 200
        assert blocked.get_json()['message'] == 'Time slot blocked successfully'

        grid = client.get(f'/api/slots/availability?courtId={court_id}&date={DATE}', headers=headers)
        slots = {slot['start']: slot for slot in grid.get_json()['data']}
        assert slots['07:00']['isBlocked'] is True

        times = client.get(f'/api/bookings/available-times?courtId={court_id}&date={DATE}').get_json()
        assert '07:00' not in times['availableTimes']
        assert '08:00' in times['availableTimes']

    def test_availability_of_other_owners_court(self, client, seed):
        response = client.get(f"/api/slots/availability?courtId={seed['court'].id}&date={DATE}",
                              headers=auth_header(seed['other_owner']))
        assert response.status_code == 403

    def test_missing_query_field(self, client, seed):
        response = client.get('/api/slots/availability', headers=auth_header(seed['owner']))
        assert response.status_code == 400


class TestBookingRoutes:
    """Test the paid booking flow over HTTP"""

    def test_pending_verify_cancel(self, client, seed):
        headers = auth_header(seed['player'])

        created = client.post('/api/bookings/create-pending', json={
            'courtId': seed['court'].id, 'dateISO': DATE, 'startTime': '10:00', 'duration': 1, 'amount': 500
        }, headers=headers)
        assert created.status_code == 201
        body = created.get_json()

        verified = client.post('/api/bookings/verify-payment', json={
            'bookingId': body['booking']['_id'], 'paymentIntentId': body['paymentIntentId']
        }, headers=headers)
        assert verified.status_code == 200
        assert verified.get_json()['success'] is True

        clash = client.post('/api/bookings/create-pending', json={
            'courtId': seed['court'].id, 'dateISO': DATE, 'startTime': '10:00', 'duration': 1
        }, headers=headers)
        assert clash.status_code == 400
        assert clash.get_json()['error'] == 'Time slot is not available'

        cancelled = client.put(f"/api/bookings/{body['booking']['_id']}/cancel", headers=headers)
        assert cancelled.get_json()['status'] == 'cancelled'

        mine = client.get('/api/bookings/me', headers=headers).get_json()
        assert [b['status'] for b in mine] == ['cancelled']

        me = client.get('/api/auth/me', headers=headers).get_json()
        assert me['reliabilityScore'] == 70

    def test_owner_booking_listing(self, client, seed):
        client.post('/api/bookings', json={
            'courtId': seed['court'].id, 'dateISO': DATE, 'start': '18:00', 'end': '19:00'
        }, headers=auth_header(seed['player']))

        owner_view = client.get('/api/bookings/owner', headers=auth_header(seed['owner'], role='facility_owner'))
        assert owner_view.get_json()['total'] == 1
        assert owner_view.get_json()['data'][0]['price'] == 500

        player_view = client.get('/api/bookings/owner', headers=auth_header(seed['player']))
        assert player_view.status_code == 403

    def test_verify_requires_booking_id(self, client, seed):
        response = client.post('/api/bookings/verify-payment', json={}, headers=auth_header(seed['player']))
        assert response.status_code == 400


class TestReviewsAndCoupons:

    def test_review_updates_rating(self, client, seed):
        facility_id = seed['facility'].id
        headers = auth_header(seed['player'])

        client.post('/api/reviews', json={'facilityId': facility_id, 'rating': 4}, headers=headers)
        client.post('/api/reviews', json={'facilityId': facility_id, 'rating': 5, 'text': 'Great'}, headers=headers)

        facility = client.get(f'/api/facilities/{facility_id}').get_json()
        assert facility['ratingAvg'] == 4.5
        assert facility['ratingCount'] == 2
        assert client.get(f'/api/reviews/facility/{facility_id}').get_json()['total'] == 2

    def test_owner_cannot_review(self, client, seed):
        response = client.post('/api/reviews', json={'facilityId': seed['facility'].id, 'rating': 5},
                               headers=auth_header(seed['owner']))
        assert response.status_code == 403

    def test_coupon_discount(self, client, seed):
        created = client.post('/api/coupons', json={'code': 'summer10', 'type': 'percent', 'value': 10},
                              headers=auth_header(seed['owner']))
        assert created.get_json()['code'] == 'SUMMER10'

        result = client.post('/api/coupons/validate', json={'code': 'SUMMER10', 'amount': 500},
                             headers=auth_header(seed['player'])).get_json()
        assert result['valid'] is True
        assert result['discount'] == 50
        assert result['finalAmount'] == 450


class TestStatsAndIntegrations:

    def test_admin_stats(self, client, seed):
        body = client.get('/api/stats/admin', headers=auth_header(seed['admin'])).get_json()

        assert body['totalUsers'] == 4
        assert body['totalFacilities'] == 1

    def test_owner_dashboard_of_other_owner_forbidden(self, client, seed):
        response = client.get(f"/api/stats/facility-owner/{seed['owner'].id}",
                              headers=auth_header(seed['other_owner']))
        assert response.status_code == 403

    def test_maps_link(self, client):
        body = client.get('/api/integrations/maps/link?destLat=22.72&destLng=75.86').get_json()
        assert body['url'].startswith('https://www.google.com/maps/dir/?api=1&destination=22.72')

    def test_ics_download(self, client):
        response = client.get('/api/integrations/ics/Badminton')

        assert response.mimetype == 'text/calendar'
        assert b'SUMMARY:Badminton' in response.data


class TestInputValidation:
    """Malformed ids and numbers are client errors"""

    def test_non_numeric_court_id(self, client, seed):
        response = client.get('/api/bookings/available-times?courtId=abc')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'courtId must be an integer'}

    def test_non_numeric_booking_id(self, client, seed):
        response = client.post('/api/bookings/verify-payment', json={'bookingId': 'abc'},
                               headers=auth_header(seed['player']))

        assert response.status_code == 400
        assert response.get_json() == {'error': 'bookingId must be an integer'}

    def test_offer_with_non_numeric_court(self, client, seed):
        response = client.post('/api/offers', json={
            'facilityId': seed['facility'].id, 'courtId': 'abc', 'offeredPrice': 400
        }, headers=auth_header(seed['player']))

        assert response.status_code == 400
        assert response.get_json() == {'error': 'courtId must be an integer'}

    def test_offer_price_must_be_finite(self, client, seed):
        for price in ('nan', 'inf', '-Infinity'):
            response = client.post('/api/offers', json={
                'facilityId': seed['facility'].id, 'courtId': seed['court'].id, 'offeredPrice': price
            }, headers=auth_header(seed['player']))

            assert response.status_code == 400
            assert response.get_json() == {'error': 'offeredPrice must be a number'}

    def test_non_numeric_slot_court(self, client, seed):
        response = client.get(f'/api/slots/availability?courtId=abc&date={DATE}', headers=auth_header(seed['owner']))
        assert response.status_code == 400

    def test_zero_duration_rejected(self, client, seed):
        response = client.post('/api/bookings/create-pending', json={
            'courtId': seed['court'].id, 'dateISO': DATE, 'startTime': '10:00', 'duration': 0
        }, headers=auth_header(seed['player']))

        assert response.status_code == 400
        assert response.get_json() == {'error': 'duration must be at least 1 hour'}

    def test_block_flag_must_be_boolean(self, client, seed):
        headers = auth_header(seed['owner'])
        window = {'courtId': seed['court'].id, 'dateISO': DATE, 'start': '07:00', 'end': '08:00'}

        for flag in ('false', None, 0):
            response = client.post('/api/slots/block', json={**window, 'isBlocked': flag}, headers=headers)
            assert response.status_code == 400
            assert response.get_json() == {'error': 'isBlocked must be true or false'}

        unblocked = client.post('/api/slots/block', json={**window, 'isBlocked': False}, headers=headers)
        assert unblocked.get_json()['message'] == 'Time slot unblocked successfully'
