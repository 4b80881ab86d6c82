"""View models, UI state and the helpers they render with."""
