"""CSV source ingestion.

This module detects changed source files, validates rows, and emits
each valid record as one stream message.
"""
