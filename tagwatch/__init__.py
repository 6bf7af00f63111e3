"""Collect container images from Dockerfiles and YAML lists, validate their labels and sort and filter tags."""

__version__ = "0.1.0"