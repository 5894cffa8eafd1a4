"""
Scheduling Core

Pure scheduling logic with no persistence:
- Slot generation (slots.py)
- Conflict detection (conflicts.py)
- Appointment and telehealth lifecycles (lifecycle.py)
"""
