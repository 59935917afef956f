# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration and email verification (auth.users table)
# - Password hashing
# - Session issuance and token refresh
# - Auth-state notifications to the client (consumed by observer.py)

"""
Supabase Auth calls used here:
- auth.sign_up() - register a user, with display_name/phone in user metadata
- auth.sign_in_with_password() - open a session on the calling client
- auth.sign_out() - close the calling client's session
- auth.get_session() - session held by the client, if any
- auth.on_auth_state_change() - subscribe to SIGNED_IN / SIGNED_OUT /
  TOKEN_REFRESHED / USER_UPDATED; returns a subscription with unsubscribe()
- auth.get_user(jwt=...) - resolve a bearer token for the JSON API
"""
