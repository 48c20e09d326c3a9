"""Admission gate (rate limiting) backends.

Middleware depends on the AdmissionGate interface only, so the in-process
limiter used in development and the hosted Redis limiter used in production
are interchangeable.
"""

from notekeeper.admission.base import AdmissionDecision, AdmissionGate
from notekeeper.admission.factory import build_admission_gate

__all__ = ["AdmissionDecision", "AdmissionGate", "build_admission_gate"]
