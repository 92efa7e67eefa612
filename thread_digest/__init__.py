"""
Slack Thread Digest

Backend service and client for summarizing Slack threads with Gemini,
backed by a fingerprint-validated summary cache.
"""

__version__ = "1.0.0"
