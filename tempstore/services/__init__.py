"""Service layer for temporary storage."""
