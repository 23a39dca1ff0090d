"""Availability app package.

This app holds the availability-conflict detection and caching layer:
an in-process TTL/LRU cache store, a cache-aside orchestrator, the
resolver that reconciles vehicles against reservations and scheduled
services, and the router that invalidates cached results whenever a
reservation changes.

The cache is per process. Several web workers behind a load balancer
each hold an independent cache; staleness between them is bounded only
by the entry TTLs.
"""
