"""
User profile storage.
"""
