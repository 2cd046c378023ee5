"""
DoctorQuest quiz application.

This package bundles a question feed, a session/scoring controller and the
auth/stats bridge on top of a hosted backend (Supabase) or an in-memory one.
"""

from .config.loader import load_settings

__all__ = ["load_settings"]
