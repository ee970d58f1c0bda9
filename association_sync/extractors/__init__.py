"""Readers that turn input files into facility records."""
