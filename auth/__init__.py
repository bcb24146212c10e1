"""
auth: User authentication module.

Provides:
  • JWT token issuing & verification (``TokenService``)
  • Password hashing (bcrypt, per-hash salt)
  • Request / response schemas and the public user projection
  • ``get_current_user`` / ``get_optional_user`` FastAPI dependencies
"""
