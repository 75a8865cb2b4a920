"""Outbox admin API."""
