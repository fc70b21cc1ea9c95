"""Infrastructure adapters: persistence, metadata, images, observability."""
