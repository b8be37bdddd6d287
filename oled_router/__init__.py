# oled_router/__init__.py
"""Route OSC messages to one of several OLED displays."""
