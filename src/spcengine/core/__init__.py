"""Core of the SPC engine: configuration, validation and the calculation engine."""
