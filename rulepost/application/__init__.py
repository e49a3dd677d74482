"""
Application layer - Publication use cases and orchestration for Rule Post.

This layer contains:
- Port definitions (document store, attachment store, digest sender, clock)
- Application services (publishers, submission, deletion, lifecycle actions)
- The publication orchestrator

IMPORT RULES:
- CAN import from: domain, config
- CANNOT import from: infrastructure, api
"""
