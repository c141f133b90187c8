"""MedEcho: clinical scheduling and telehealth intake backend."""

__version__ = "0.1.0"
