"""
chatgate - inbound message admission for Slack agent adapters
"""

__version__ = "0.1.0"
