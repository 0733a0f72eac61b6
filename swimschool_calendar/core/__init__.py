"""Configuration and logging for swimschool_calendar."""
