"""Registry database engine and sessions."""
