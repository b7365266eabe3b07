"""auth/ -- Accounts, credentials and sessions for JobPortal.

Layer rule: auth/ imports only stdlib, third-party libraries, core/ and the
media/ upload helpers. It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
