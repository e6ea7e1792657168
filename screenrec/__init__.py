"ScreenRec: start, track and gracefully stop a background screen recorder."

__version__ = "0.1.0"
