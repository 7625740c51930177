"""Chat platform integrations feeding the relay."""
