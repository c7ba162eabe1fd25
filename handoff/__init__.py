"""Family scheduling: conflict detection and conflict-safe event assignment."""
