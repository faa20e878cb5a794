"""Slack Meeting Bot.

A Slack app that keeps a team's meetings in the channel: it posts the
week's Google Calendar events, reminds people about today's and
tomorrow's meetings, announces meetings as they start and records who
is attending through interactive buttons.

Features:
- Environment-based configuration with Pydantic validation
- Google Calendar integration via service account
- Attendance tracking persisted to JSON files
- Scheduled announcements with APScheduler
- Socket Mode for simple deployment
"""

__version__ = "1.0.0"
__license__ = "MIT"
