from flask import Blueprint, request, jsonify, g
from fitstudio.services.booking_service import BookingService
from fitstudio.utils.decorators import token_required, capability_required
from fitstudio.utils.pagination import page_args, paginated

waitlist_bp = Blueprint('waitlist', __name__)

@waitlist_bp.route('/', methods=['GET'])
@token_required
@capability_required('manage_waitlist')
def list_waitlist(current_user):
    page, limit = page_args()
    try:
        result = BookingService.list_waitlist(
            g.actor,
            session_id=request.args.get('session_id', type=int),
            status=request.args.get('status'),
            page=page,
            per_page=limit
        )
    except ValueError as e:
        return jsonify({'error': str(e), 'code': 'VALIDATION_ERROR'}), 400
    return jsonify(paginated(result))

@waitlist_bp.route('/user/<int:user_id>', methods=['GET'])
@token_required
def get_user_waitlist(current_user, user_id):
    entries = BookingService.get_user_waitlist(user_id, g.actor)
    return jsonify({'data': [e.to_dict() for e in entries]})

@waitlist_bp.route('/<int:entry_id>/notify', methods=['POST'])
@token_required
@capability_required('manage_waitlist')
def notify_entry(current_user, entry_id):
    entry = BookingService.notify_waitlist_entry(entry_id, g.actor)
    return jsonify({'data': entry.to_dict(), 'message': 'User notified successfully'}), 200

@waitlist_bp.route('/<int:entry_id>/cancel', methods=['POST'])
@token_required
def cancel_entry(current_user, entry_id):
    entry = BookingService.cancel_waitlist_entry(entry_id, g.actor)
    return jsonify({'data': entry.to_dict(), 'message': 'Waitlist entry cancelled successfully'}), 200

@waitlist_bp.route('/expire', methods=['POST'])
@token_required
@capability_required('admin')
def expire_entries(current_user):
    expired = BookingService.expire_waitlist_entries()
    return jsonify({'expired': [e.id for e in expired]}), 200
