"""Tests for menunotes."""
