"""Flask HTTP layer for the rental catalog mirror."""
