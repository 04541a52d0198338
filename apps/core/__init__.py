"""
Core app for the newsroom.

Provides shared models (staff profiles, audit trail), the role policy,
the workflow error taxonomy, request tracing and health checks.
"""
