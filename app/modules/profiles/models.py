# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# The DDL and row-level policies live in sql/profiles.sql

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id on delete cascade)
- display_name: text (not null)
- email: text (not null)
- phone: text (nullable)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

Row-level policies:
- select: auth.uid() = id
- insert: auth.uid() = id (the primary key allows one row per user)
- update: auth.uid() = id

Note: passwords, sessions and email verification belong to Supabase Auth
(auth.users). This table only stores display metadata.
"""
