"""Rentals app package.

Customers and their vehicle reservations. Every state-changing use case
(create, modify, cancel) runs in a unit of work and, once committed,
hands the affected location and customer to the availability
invalidation router before returning to the caller.
"""
