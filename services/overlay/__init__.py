from services.overlay.sync import OverlaySync

__all__ = ["OverlaySync"]
