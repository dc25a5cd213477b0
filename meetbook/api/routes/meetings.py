from flask import Blueprint, request, jsonify
from meetbook.errors import ValidationError
from meetbook.services.meeting_service import MeetingService
from meetbook.services.report_service import ReportService
from meetbook.utils.decorators import admin_required

meetings_bp = Blueprint('meetings', __name__)

def get_json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('No input data provided')
    return data

@meetings_bp.route('', methods=['GET'])
def list_meetings():
    meetings = ReportService.from_app().meetings_with_counts()
    return jsonify(meetings), 200

@meetings_bp.route('', methods=['POST'])
@admin_required
def create_meeting():
    meeting = MeetingService.from_app().create_meeting(get_json_body())
    return jsonify({'message': 'Meeting created successfully', 'meeting': meeting.to_dict()}), 201

@meetings_bp.route('/<meeting_id>', methods=['PUT'])
@admin_required
def update_meeting(meeting_id):
    meeting = MeetingService.from_app().update_meeting(meeting_id, get_json_body())
    return jsonify({'message': 'Meeting updated successfully', 'meeting': meeting.to_dict()}), 200

@meetings_bp.route('/<meeting_id>', methods=['DELETE'])
@admin_required
def delete_meeting(meeting_id):
    meeting, removed = MeetingService.from_app().delete_meeting(meeting_id)
    return jsonify({
        'message': 'Meeting deleted successfully',
        'deletedMeeting': meeting.to_dict(),
        'removedBookingsCount': removed
    }), 200
