"""Configuration, logging, exceptions and startup wiring."""
