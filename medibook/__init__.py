"""
MediBook

A FastAPI-based doctor appointment booking service: recurring doctor
availability, bookable slot listing, and the appointment status lifecycle.
"""

__version__ = "1.0.0"
