"""NiceGUI presentation layer."""
