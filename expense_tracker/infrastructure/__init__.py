"""Infrastructure — database session management, repositories and logging setup."""
