"""Line-based file synchronisation server, interactive client and wire protocol."""

__version__ = "1.0.0"