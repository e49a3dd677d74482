"""Composition root for Rule Post.

`bootstrap.publication` owns the shared store, clock, calendar and service
instances. The API and the publication worker obtain them here, so neither
imports the in-memory stubs or adapters directly.
"""
