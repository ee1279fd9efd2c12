from flask import current_app
from flask_socketio import join_room, leave_room

from fitstudio.extensions import socketio
from fitstudio.services.notification_service import user_room


def register_socket_events():
    @socketio.on('connect')
    def on_connect():
        current_app.logger.info("Socket connected")

    @socketio.on('join')
    def on_join(user_id):
        # Per-user room used for waitlist promotions
        join_room(user_room(user_id))
        current_app.logger.info(f"User {user_id} joined socket room")

    @socketio.on('leave')
    def on_leave(user_id):
        leave_room(user_room(user_id))

    @socketio.on('disconnect')
    def on_disconnect(*args):
        current_app.logger.info("Socket disconnected")
