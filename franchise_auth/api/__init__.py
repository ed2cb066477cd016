"""HTTP application and shared dependencies."""
