"""
Unified Patient Manager - records and billing API for providers, patients and staff.
"""
__version__ = "1.0.0"
