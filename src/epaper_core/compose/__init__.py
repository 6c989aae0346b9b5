"""Crop composition, download file names and share notices."""
