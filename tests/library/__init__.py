"""Test doubles for the cachier tests."""
