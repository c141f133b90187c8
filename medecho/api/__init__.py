"""HTTP API for MedEcho."""

from medecho.api.app import create_app

__all__ = ["create_app"]
