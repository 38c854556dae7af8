"""Timeclock package.

Attendance state machine (clock-in/out, breaks, geo capture, compliance
gating) plus weekly rota publication and the shift reminder scheduler.
Organized by feature modules with thin Flask controllers over
service/repository layers.
"""
