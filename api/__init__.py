"""
api: HTTP surface: auth routes, envelope-producing exception handlers and
request middleware.
"""
