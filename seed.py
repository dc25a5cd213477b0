from datetime import date, timedelta
from meetbook import create_app, db
from meetbook.services.meeting_service import MeetingService

app = create_app()

with app.app_context():
    db.create_all()

    service = MeetingService.from_app()
    existing = {m.title for m in service.list_meetings()}

    # Create Meetings
    start = date.today() + timedelta(days=7)
    meetings_data = [
        {"title": "Intro Session", "time": "14:00", "duration": 60, "maxAttendees": 20, "location": "Main Hall"},
        {"title": "Beginners Workshop", "time": "10:00", "duration": 90, "minAttendees": 3, "maxAttendees": 8},
        {"title": "Open Q&A", "time": "18:30", "duration": 45, "description": "Bring your questions"},
    ]

    for offset, m_data in enumerate(meetings_data):
        if m_data["title"] in existing:
            continue
        m_data["date"] = (start + timedelta(days=offset)).isoformat()
        meeting = service.create_meeting(m_data)
        print(f"Meeting {meeting.title} created ({meeting.id}).")

    print("Document store seeded successfully.")
