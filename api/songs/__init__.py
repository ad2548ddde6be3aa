"""
Song catalog feature: SQL, business logic and HTTP endpoints for songs.
"""
