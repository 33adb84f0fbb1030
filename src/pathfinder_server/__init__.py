"""pathfinder_server — FastAPI HTTP surface over a single Pathfinder conversation."""
