"""
Persistence and statistics for the book review backend.

This package provides:
- Record models for users, reviews and books
- The MongoDB data access layer
- Review statistics (per-day counts, most reviewed books)
- Password hashing helpers
"""
