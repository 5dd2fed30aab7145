"""PosterFlags - audio language flag overlays for media posters."""

__version__ = "0.1.0"
