"""Authentication.

Learn: One authentication path with two layers:
1. Users → email/password → signed JWT, written into a persisted
   sessions row and an auth cookie
2. Every request → credential (cookie or Bearer header) → JWT check →
   sessions row check (expiry authoritative) → Identity

Authorization (what an Identity may do) lives in taskboard.access.
"""
