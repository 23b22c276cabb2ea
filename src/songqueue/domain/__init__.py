"""Domain layer - catalog access and playback."""
