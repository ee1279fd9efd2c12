from flask import Blueprint, request, jsonify, g
from fitstudio.services.booking_service import BookingService
from fitstudio.utils.decorators import token_required, capability_required
from fitstudio.utils.pagination import page_args, paginated

bookings_bp = Blueprint('bookings', __name__)

@bookings_bp.route('/', methods=['GET'])
@token_required
def list_bookings(current_user):
    page, limit = page_args()
    try:
        result = BookingService.list_bookings(
            g.actor,
            status=request.args.get('status'),
            user_id=request.args.get('user_id', type=int),
            page=page,
            per_page=limit
        )
    except ValueError as e:
        return jsonify({'error': str(e), 'code': 'VALIDATION_ERROR'}), 400
    return jsonify(paginated(result))

@bookings_bp.route('/', methods=['POST'])
@token_required
def create_booking(current_user):
    data = request.get_json(silent=True) or {}
    session_id = data.get('session_id')
    if isinstance(session_id, bool) or not isinstance(session_id, int):
        return jsonify({'error': 'session_id must be an integer', 'code': 'VALIDATION_ERROR'}), 400

    result = BookingService.create_booking(
        user_id=current_user.id,
        session_id=session_id,
        payment_method=data.get('payment_method'),
        special_requests=data.get('special_requests')
    )

    if result.outcome == 'waitlisted':
        return jsonify({
            'status': 'waitlisted',
            'data': result.entry.to_dict(),
            'message': 'Added to waitlist - you will be notified if a spot opens up'
        }), 201
    return jsonify({
        'status': 'confirmed',
        'data': result.booking.to_dict(),
        'message': 'Booking created successfully'
    }), 201

@bookings_bp.route('/<int:booking_id>', methods=['GET'])
@token_required
def get_booking(current_user, booking_id):
    booking = BookingService.get_booking(booking_id, g.actor)
    return jsonify(booking.to_dict())

@bookings_bp.route('/<int:booking_id>/cancel', methods=['POST'])
@token_required
def cancel_booking(current_user, booking_id):
    data = request.get_json(silent=True) or {}
    booking = BookingService.cancel_booking(booking_id, g.actor, reason=data.get('reason'))
    return jsonify({'data': booking.to_dict(), 'message': 'Booking cancelled successfully'}), 200

@bookings_bp.route('/<int:booking_id>/attendance', methods=['POST'])
@token_required
@capability_required('mark_attendance')
def mark_attendance(current_user, booking_id):
    data = request.get_json(silent=True) or {}
    booking = BookingService.mark_attendance(booking_id, g.actor, attended=bool(data.get('attended', True)))
    return jsonify({'data': booking.to_dict(), 'message': f'Booking marked {booking.status}'}), 200
