"""Reservations app package.

This app encapsulates the reservation engine: the per-vehicle
availability ledger, the pricing calculator and the reservation state
machine, together with the expiry sweep and the HTTP API on top of
them. Double bookings are prevented in process by per-vehicle locks and
across processes by row locks plus an overlap re-check in the database.
"""
