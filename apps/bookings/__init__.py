"""Bookings app package.

This app encapsulates the booking domain: the booking model, the
availability ledger that decides whether dates can be granted, the
pending -> approved/rejected lifecycle, and the commit protocol that
keeps approved bookings of one vehicle from ever overlapping.
"""
