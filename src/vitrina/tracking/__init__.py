"""Registro de visitas."""

from vitrina.tracking.view_tracker import ViewTracker

__all__ = ["ViewTracker"]
