"""Intake services: portal API client, availability matching and the wizard."""
