"""Internal endpoint modules: request building and response parsing."""
