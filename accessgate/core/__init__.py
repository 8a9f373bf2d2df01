"""Core configuration, logging and interfaces."""
