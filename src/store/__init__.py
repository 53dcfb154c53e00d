"""Storage layer.

This module consumes stream messages and persists them as table rows,
acknowledging each message only after its write commits.
"""
