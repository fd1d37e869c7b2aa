"""Enrollment use cases."""
