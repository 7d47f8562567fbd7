"""auth/ -- Accounts, credentials, tokens, and role guards for Shopfront.

Layer rule: auth/ imports only stdlib, third-party libraries, core/, mail/,
and uploads/. It does NOT import from api/, catalog/, or cache/.
api/ imports from auth/, not the other way around.
"""
