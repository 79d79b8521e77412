"""
security/ - Credentials
=======================
Password hashing for seeded accounts.
"""
