"""
Hosted-backend adapters.

Responsibilities:
- Document store (reviews, favorites, users) with in-memory and Firestore backends.
- Blob store for profile pictures with in-memory and Firebase Storage backends.
- Map provider failures onto the shared error taxonomy.
"""
