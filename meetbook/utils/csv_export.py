import csv
import io
from datetime import date

from meetbook.errors import ValidationError

REPORT_TYPES = ('bookings', 'meetings', 'combined')


def rows_to_csv(rows):
    """Render a list of flat dicts as CSV, header taken from the first row.

    Fields containing commas, quotes or newlines are quoted, quotes doubled.
    """
    if not rows:
        return ''

    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, lineterminator='\n', extrasaction='ignore')
    writer.writeheader()
    for row in rows:
        writer.writerow({h: '' if row.get(h) is None else row.get(h) for h in headers})
    return buffer.getvalue().rstrip('\n')


def build_export(report_type, reports, today=None):
    """Return (csv text, download filename) for one report type."""
    stamp = (today or date.today()).isoformat()

    if report_type == 'bookings':
        return rows_to_csv(reports.booking_report()), f"bookings-export-{stamp}.csv"
    if report_type == 'meetings':
        return rows_to_csv(reports.meetings_summary()), f"meetings-summary-{stamp}.csv"
    if report_type == 'combined':
        body = '\n'.join([
            '=== BOOKINGS REPORT ===',
            rows_to_csv(reports.booking_report()),
            '',
            '',
            '=== MEETINGS SUMMARY ===',
            rows_to_csv(reports.meetings_summary()),
        ])
        return body, f"complete-export-{stamp}.csv"

    raise ValidationError("Invalid report type. Use: bookings, meetings, or combined")
