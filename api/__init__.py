"""
FastAPI RESTful API for the Book Review backend.

This module provides a REST API for:
- User signup, login, listing and removal
- Book reviews with optional audio uploads
- A book catalog with optional cover images
- Review statistics
"""
