"""Ingestion pipeline stages."""
