"""Version-control client used to clone and initialize repositories."""
