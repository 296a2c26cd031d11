"""Services for external integrations and chat logic.

Clients that talk to external systems are built once in the application
lifespan (see marvin.main) and handed to routes through marvin.api.deps.
"""
