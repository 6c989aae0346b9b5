"""Edition lookup and page image resolution."""
