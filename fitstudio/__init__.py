import logging

from flask import Flask, jsonify
from fitstudio.config import DevelopmentConfig
from fitstudio.errors import BookingError
from fitstudio.extensions import db, migrate, socketio

def create_app(config_class=DevelopmentConfig):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=app.config['LOG_LEVEL'])
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    socketio.init_app(app, cors_allowed_origins="*",
                      message_queue=app.config.get('SOCKETIO_MESSAGE_QUEUE'))

    # Register Blueprints
    from fitstudio.api.routes.auth import auth_bp
    from fitstudio.api.routes.bookings import bookings_bp
    from fitstudio.api.routes.sessions import sessions_bp
    from fitstudio.api.routes.waitlist import waitlist_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(bookings_bp, url_prefix='/api/bookings')
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(waitlist_bp, url_prefix='/api/waitlist')

    @app.errorhandler(BookingError)
    def handle_booking_error(error):
        app.logger.info(f"Request rejected: {error.code} ({error})")
        return jsonify(error.to_dict()), error.status_code

    @app.route('/health')
    def health():
        return {"status": "ok", "app": "FitStudio"}

    from fitstudio.sockets import register_socket_events
    register_socket_events()

    from fitstudio.commands import register_commands
    register_commands(app)

    return app
