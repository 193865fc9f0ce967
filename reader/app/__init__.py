"""Filter and rule service for the feed reader."""
