"""Test suite for the channel statistics service."""
