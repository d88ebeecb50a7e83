"""Lithe command line interface."""
