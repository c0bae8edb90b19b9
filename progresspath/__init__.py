"""ProgressPath API: learning progress tracking backed by Supabase."""

__version__ = "0.1.0"
