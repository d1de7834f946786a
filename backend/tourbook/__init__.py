"""Tourbook booking-site API: authentication and access control."""
