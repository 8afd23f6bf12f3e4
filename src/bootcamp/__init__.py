"""Core domain package for AI Bootcamp registrations and payments."""
