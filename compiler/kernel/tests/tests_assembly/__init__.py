"""Compiler assembly layer tests."""
