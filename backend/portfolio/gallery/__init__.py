"""Gallery interaction engine: scrolling, transitions and preloading."""
