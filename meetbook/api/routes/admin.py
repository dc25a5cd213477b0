from flask import Blueprint, request, jsonify, Response
from meetbook.services.report_service import ReportService
from meetbook.utils.csv_export import build_export
from meetbook.utils.decorators import admin_required

admin_bp = Blueprint('admin', __name__)

# --- DASHBOARD ---

@admin_bp.route('', methods=['GET'])
@admin_bp.route('/stats', methods=['GET'])
@admin_required
def get_stats():
    return jsonify(ReportService.from_app().admin_stats()), 200

# --- EXPORT ---

@admin_bp.route('/export', methods=['GET'])
@admin_required
def export_report():
    report_type = request.args.get('type', 'bookings')
    body, filename = build_export(report_type, ReportService.from_app())
    return Response(body, status=200, headers={
        'Content-Type': 'text/csv',
        'Content-Disposition': f'attachment; filename="{filename}"',
        'Cache-Control': 'no-cache'
    })
