"""
Domain layer - account models and repository interfaces.

Nothing here touches Flask or Kuzu.
"""
