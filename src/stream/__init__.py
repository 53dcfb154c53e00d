"""Message stream layer.

This module defines the wire format and transport interfaces shared
by the emitter and persister, plus the Kafka adapters.
"""
