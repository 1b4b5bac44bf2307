"""Infrastructure layer — database, credential storage, workspace.

This layer depends on stdlib and third-party libs (SQLAlchemy, pluggy).
It must never import from services, commands, or output.
The service layer bridges between domain models and infrastructure.
"""
