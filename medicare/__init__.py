"""
MediCare Hub

FastAPI backend for doctor accounts, appointment confirmation and
transactional patient email.
"""

__version__ = "1.0.0"
