"""Shared utilities: telemetry and filename/temp-file helpers.

Used by domain, application, and infrastructure. No business logic.
"""
