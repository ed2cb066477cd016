"""Tenant-scoped administration endpoints."""
