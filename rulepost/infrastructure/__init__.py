"""
Infrastructure layer - External adapters for Rule Post.

This layer contains:
- The system time authority
- In-memory document store, attachment store and digest sender stubs
- structlog configuration and correlation ids
- APScheduler wiring for the publication orchestrator

IMPORT RULES:
- CAN import from: domain, application
- Implements ports defined in application layer
"""
