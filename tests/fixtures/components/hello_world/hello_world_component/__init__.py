"""Hello World fixture component."""
