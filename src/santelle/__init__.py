"""
Santelle - plan quiz and waitlist backend.

Packages:
- quiz: question catalogue, recommendation engine, quiz flow state machine
- santelle.db: Supabase and in-memory storage for quiz records and the waitlist
- santelle.web: FastAPI application
"""

__version__ = "1.0.0"
