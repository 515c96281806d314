"""Configuration loading (config file, .env, environment)."""
