"""Grid evaluation backends."""
