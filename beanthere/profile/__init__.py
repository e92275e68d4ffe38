"""
User profiles: the ``users`` documents and profile pictures in blob storage.
"""
