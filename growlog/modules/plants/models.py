# Supabase table: plants
# This file documents the expected database schema
# Actual operations are handled via the document store in repository.py

"""
Expected Supabase table structure:
- id: uuid (primary key, default: gen_random_uuid())
- owner_id: uuid (foreign key to auth.users.id, not null)
- qr_code: text (not null) - printed on the plant label, globally unique
- strain: text (not null)
- birth_date: date (not null)
- grow_room_id: uuid (references environments.id, no ON DELETE action)
- status: text (not null)
- created_at: timestamptz (not null, default: now())
- unique constraint on (qr_code)
- index on (owner_id, created_at desc), (grow_room_id)

grow_room_id deliberately has no cascade: deleting an environment leaves
its plants pointing at a missing grow room.
"""
