"""Answer key export."""
