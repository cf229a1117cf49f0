"""
Account lifecycle management for staff: patient lookup, inactivation and
inactivity reporting.
"""
