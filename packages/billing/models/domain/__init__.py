"""Domain models for billing."""
