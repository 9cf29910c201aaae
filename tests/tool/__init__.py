"""Tests for the depot-build command line tool."""
