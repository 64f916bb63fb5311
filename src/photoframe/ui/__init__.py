"""NiceGUI pages: the frame itself and its settings."""
