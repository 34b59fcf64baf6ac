"""Home menu data layer: titles, themes, configuration, passwords and command messages."""

__version__ = "0.1.0"

__all__ = ["convert", "passwords", "protocol", "results", "storage", "themes", "titles"]