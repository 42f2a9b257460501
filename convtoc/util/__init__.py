"""Small helpers shared across convtoc modules."""
