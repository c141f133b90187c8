"""Persistence, auth and session primitives."""
