"""Business services for moderation, reputation and content lifecycle."""
