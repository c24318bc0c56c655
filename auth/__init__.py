"""auth/ -- Password hashing, access/refresh tokens and session flows for Chirpy.

Layer rule: auth/ imports only stdlib + third-party libraries, except
auth/dependencies.py which reads core.config for the webhook key.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
