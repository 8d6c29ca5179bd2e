# Supabase table: diary_entries
# This file documents the expected database schema
# Actual operations are handled via the document store in repository.py

"""
Expected Supabase table structure:
- id: uuid (primary key, default: gen_random_uuid())
- plant_id: uuid (references plants.id)
- author_id: uuid (foreign key to auth.users.id, not null) - owner of the entry
- timestamp: timestamptz (not null, default: now())
- note: text (not null)
- stage: text (nullable)
- height_cm: numeric (nullable)
- ec: numeric (nullable)
- ph: numeric (nullable)
- temp: numeric (nullable) - degrees Celsius
- humidity: numeric (nullable) - percent
- photo_url: text (nullable)
- ai_summary: text (nullable)
- index on (plant_id, timestamp desc)
"""
