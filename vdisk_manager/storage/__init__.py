"""Image, filesystem, mount and mount table operations."""
