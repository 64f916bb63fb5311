"""Network and filesystem collaborators: image source and weather."""
