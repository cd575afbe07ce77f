"""
Notification channels and dispatch.
"""
