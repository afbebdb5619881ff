"""Notification dispatch service for the project controls reporting tool.

The package follows a layered layout: ``domain`` holds plain entities,
``infrastructure`` the database, transports and channel adapters,
``application`` the use cases and ``interfaces`` the FastAPI surface.
"""
