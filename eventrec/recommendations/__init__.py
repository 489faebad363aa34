"""
Recommendation engine.

Responsibilities:
- Score events from similar users' attendance (collaborative filtering).
- Score events against declared interests, past tags, places and times.
- Score events by demand, popularity and recent engagement trends.
- Merge the three signals into one ranked, explainable list.
"""
