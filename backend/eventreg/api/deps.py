"""
Request dependencies for objects owned by the application instance.
"""

from fastapi import Request

from eventreg.services.interfaces.admission import AdmissionStrategy


def get_admission(request: Request) -> AdmissionStrategy:
    """Admission strategy created by the entry point (see main.py)."""
    return request.app.state.admission
