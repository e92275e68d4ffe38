"""
Cafe reviews.

Responsibilities:
- Validate review submissions (rating 1..5, non-blank text up to 500 chars).
- Persist reviews in the ``reviews`` collection, one per (cafe, user).
- Derive per-cafe ratings and the reviewer's taste profile.
"""
