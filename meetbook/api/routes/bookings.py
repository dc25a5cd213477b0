from flask import Blueprint, request, jsonify
from meetbook.errors import ValidationError
from meetbook.services.booking_service import BookingService
from meetbook.utils.decorators import admin_required

bookings_bp = Blueprint('bookings', __name__)

CONFIRMATION_MESSAGE = ('Thank you! An invite will be sent for this meeting nearer the event date. '
                        'Thanks for submitting.')

@bookings_bp.route('', methods=['GET'])
@admin_required
def list_bookings():
    bookings = BookingService.from_app().list_bookings()
    return jsonify([b.to_dict() for b in bookings]), 200

@bookings_bp.route('', methods=['POST'])
def create_booking():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('No input data provided')

    booking, attendee_count = BookingService.from_app().create_booking(
        email=data.get('email'),
        meeting_id=data.get('meetingId')
    )
    return jsonify({
        'message': CONFIRMATION_MESSAGE,
        'booking': booking.to_dict(),
        'attendeeCount': attendee_count
    }), 201

@bookings_bp.route('/<booking_id>', methods=['DELETE'])
@admin_required
def delete_booking(booking_id):
    booking = BookingService.from_app().delete_booking(booking_id)
    return jsonify({'message': 'Booking deleted successfully', 'deletedBooking': booking.to_dict()}), 200
