"""
MedBook

A FastAPI-based core for booking medical appointments between doctors and
patients, with conflict validation, ownership checks and per-doctor
serialization of bookings.
"""

__version__ = "1.0.0"
