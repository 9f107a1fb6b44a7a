"""Utility modules for temporary storage."""
