"""Connections to the association API and the location store."""
