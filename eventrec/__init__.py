"""
Hybrid event recommendation service.

Ranks upcoming events for a user by combining similar users' attendance,
content match against the user's preferences, and event popularity.
"""
