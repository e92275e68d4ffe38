"""
Favorite cafes, one list per signed-in user, backed by the ``favorites`` collection.
"""
