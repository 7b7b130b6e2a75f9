"""
Domain layer for attachment sweep business logic.

This layer contains:
- Data models and configuration (type-safe structures)
- Capability interfaces for the mailbox and folder storage
- Business logic (templating, placement, sweep pipeline)
"""
