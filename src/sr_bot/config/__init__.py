"""Settings and config file loading."""
