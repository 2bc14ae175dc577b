"""
Serving — FastAPI query gateway and its request rate limiter.

This module exposes the query service over HTTP so that agent tools and
other clients can search the collections without talking to the vector
store directly.
"""
