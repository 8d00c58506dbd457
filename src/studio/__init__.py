"""Creative studio: chat, image and video generation with saved projects."""

__version__ = "0.1.0"
