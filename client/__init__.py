"""
client: Python consumer of the auth API.

``AuthSession`` stores the bearer token returned by login, attaches it to
later requests, and clears it on logout or on any 401 response.
"""
