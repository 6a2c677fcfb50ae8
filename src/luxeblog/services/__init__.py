"""Business services: taxonomy resolution, comment moderation and post queries."""
