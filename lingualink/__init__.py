"""Top-level package for lingualink."""

from . import config, credentials, history, languages, pipeline, storage

__all__ = ["config", "credentials", "history", "languages", "pipeline", "storage"]
