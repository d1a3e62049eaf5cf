"""HTTP API plumbing (dependencies) shared by the versioned routes."""
