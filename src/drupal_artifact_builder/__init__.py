"""Build deployable Drupal artifacts and synchronize them into a git branch."""

__version__ = "0.1.0"
