"""Test helpers for build histories and artifact trees."""
