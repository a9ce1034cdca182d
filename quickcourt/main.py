import os
from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO, join_room
from werkzeug.exceptions import HTTPException
from config.config import config
from quickcourt.database import get_db, init_db
from quickcourt.integrations import PaymentGateway, build_payment_gateway
from quickcourt.models import User
from quickcourt.models.user import canonical_role
from quickcourt.services.notification_service import PushNotifier, role_room, user_room
from quickcourt.services.registry import EXTENSION_KEY, ServiceRegistry
from quickcourt.utils.errors import ApiError
from quickcourt.utils.security import verify_token
from quickcourt.routes import admin, auth, bookings, coupons, courts, facilities, integrations, offers, reviews, slots, stats
from quickcourt.utils.logger import get_logger, init_request_logging

logger = get_logger(__name__)

BLUEPRINTS = (
    (auth.bp, '/api/auth'),
    (facilities.bp, '/api/facilities'),
    (courts.bp, '/api/courts'),
    (slots.bp, '/api/slots'),
    (bookings.bp, '/api/bookings'),
    (offers.bp, '/api/offers'),
    (reviews.bp, '/api/reviews'),
    (coupons.bp, '/api/coupons'),
    (admin.bp, '/api/admin'),
    (integrations.bp, '/api/integrations'),
    (stats.bp, '/api/stats'),
)


def create_app(config_name: str = None, payment_gateway: PaymentGateway = None) -> Flask:
    """
    Application factory.

    The payment backend is chosen here, once; pass `payment_gateway` to
    override it. The socket server and push relay belong to the app and are
    reachable as app.extensions['socketio'] and app.extensions['quickcourt'];
    the owner of the app calls app.extensions['quickcourt'].close() when done.
    """
    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    config_class = config.get(config_name, config['default'])

    app = Flask(__name__)
    app.config.from_object(config_class)

    CORS(app, origins=config_class.CLIENT_ORIGINS, supports_credentials=True)
    socketio = SocketIO(app, cors_allowed_origins=config_class.CLIENT_ORIGINS)
    register_socket_handlers(socketio)

    init_db()

    services = ServiceRegistry(
        payment_gateway or build_payment_gateway(config_class),
        PushNotifier(socketio)
    )
    app.extensions[EXTENSION_KEY] = services

    for blueprint, prefix in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=prefix)

    register_error_handlers(app)
    init_request_logging(app)

    @app.route('/')
    def health():
        return jsonify({
            'ok': True,
            'service': 'quickcourt',
            'payments': services.payment_gateway.name
        }), 200

    if config_class.ENABLE_SCHEDULER:
        services.bookings.start_scheduler(config_class.BOOKING_COMPLETION_INTERVAL_MINUTES)

    logger.info(f"QuickCourt app created ({config_name}, payments: {services.payment_gateway.name})")
    return app


def register_socket_handlers(socketio: SocketIO):
    """Authenticate sockets from the handshake token and place them in their rooms"""

    @socketio.on('connect')
    def handle_connect(auth=None):
        token = (auth or {}).get('token')
        payload = verify_token(token) if token else None
        if not payload or 'user_id' not in payload:
            logger.warning("Socket connection rejected: missing or invalid token")
            return False

        with get_db() as db:
            user = db.get(User, payload['user_id'])
            if not user or user.banned:
                logger.warning(f"Socket connection rejected for user {payload['user_id']}")
                return False
            role = user.role

        join_room(user_room(payload['user_id']))
        try:
            join_room(role_room(canonical_role(payload.get('role') or role)))
        except ValueError:
            join_room(role_room(role))
        logger.debug(f"Socket connected for user {payload['user_id']}")

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        logger.debug("Socket disconnected")


def register_error_handlers(app: Flask):

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.__class__.__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error: {str(error)}")
        return jsonify({'error': 'Internal server error'}), 500
