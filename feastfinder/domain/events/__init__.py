"""Domain events raised around outbound API calls."""
