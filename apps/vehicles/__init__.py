"""Vehicles app package.

Owners list vehicles with an image and an availability window; the
public listing shows vehicles that still have free days.
"""
