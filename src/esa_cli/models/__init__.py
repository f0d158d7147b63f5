"""Pydantic data models for esa-cli."""
