from flask import Blueprint, request, jsonify, current_app
from fitstudio.errors import BookingError
from fitstudio.services.schedule_service import ScheduleService
from fitstudio.utils.decorators import token_required, capability_required

sessions_bp = Blueprint('sessions', __name__)

@sessions_bp.route('/', methods=['GET'])
def list_sessions():
    try:
        sessions = ScheduleService.list_sessions(
            date_str=request.args.get('date'),
            status=request.args.get('status')
        )
    except ValueError as e:
        return jsonify({'error': str(e), 'code': 'VALIDATION_ERROR'}), 400
    return jsonify([s.to_dict() for s in sessions]), 200

@sessions_bp.route('/<int:session_id>', methods=['GET'])
def get_session(session_id):
    return jsonify(ScheduleService.get_session(session_id).to_dict()), 200

@sessions_bp.route('/', methods=['POST'])
@token_required
@capability_required('manage_schedule')
def create_session(current_user):
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'message': 'No input data provided'}), 400
    try:
        session = ScheduleService.create_session(data)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({'error': str(e), 'code': 'VALIDATION_ERROR'}), 400
    current_app.logger.info(f"Class {session.id} created by {current_user.username}")
    return jsonify({'message': 'Class created', 'session': session.to_dict()}), 201

@sessions_bp.route('/<int:session_id>', methods=['PUT'])
@token_required
@capability_required('manage_schedule')
def update_session(current_user, session_id):
    data = request.get_json(silent=True) or {}
    try:
        session = ScheduleService.update_session(session_id, data)
    except BookingError:
        raise
    except (TypeError, ValueError) as e:
        return jsonify({'error': str(e), 'code': 'VALIDATION_ERROR'}), 400
    return jsonify({'message': 'Class updated', 'session': session.to_dict()}), 200

@sessions_bp.route('/<int:session_id>/status', methods=['POST'])
@token_required
@capability_required('manage_schedule')
def set_status(current_user, session_id):
    data = request.get_json(silent=True) or {}
    try:
        session = ScheduleService.set_session_status(session_id, data.get('status'))
    except BookingError:
        raise
    except ValueError as e:
        return jsonify({'error': str(e), 'code': 'VALIDATION_ERROR'}), 400
    return jsonify({'message': f'Class {session.status}', 'session': session.to_dict()}), 200

@sessions_bp.route('/<int:session_id>', methods=['DELETE'])
@token_required
@capability_required('manage_schedule')
def delete_session(current_user, session_id):
    ScheduleService.delete_session(session_id)
    current_app.logger.info(f"Class {session_id} deleted by {current_user.username}")
    return jsonify({'message': 'Class deleted'}), 200
