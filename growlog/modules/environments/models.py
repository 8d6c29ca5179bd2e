# Supabase table: environments
# This file documents the expected database schema
# Actual operations are handled via the document store in repository.py

"""
Expected Supabase table structure:
- id: uuid (primary key, default: gen_random_uuid())
- owner_id: uuid (foreign key to auth.users.id, not null)
- name: text (not null)
- type: text (nullable) - Indoor | Outdoor | Estufa
- capacity: integer (nullable)
- equipment: text[] (not null, default: '{}')
- created_at: timestamptz (not null, default: now())
- index on (owner_id, created_at desc)
"""
