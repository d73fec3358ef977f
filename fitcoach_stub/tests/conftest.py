"""
Pytest configuration for fitcoach_stub. Use in-memory SQLite so tests don't touch the filesystem.
"""
import os

# In-memory SQLite; database.py uses StaticPool so all connections share the same DB
os.environ.setdefault("FITCOACH_STUB_DATABASE_URL", "sqlite:///:memory:")
# Seeding is exercised explicitly, never from the developer's environment
for _var in ("FITCOACH_STUB_SEED_EMAIL", "FITCOACH_STUB_SEED_PASSWORD", "FITCOACH_STUB_SEED_ROLE"):
    os.environ.pop(_var, None)
