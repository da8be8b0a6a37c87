"""Vehicles app package.

This app holds the vehicle listings owners rent out, their per-day
prices and the bounded history of position reports vehicles send in.
"""
