"""
Authentication module for the patient portal.

This module provides:
- Patient self-registration with email verification
- Provider, patient and staff login issuing signed bearer tokens
- Bearer token verification and role gating dependencies
"""
