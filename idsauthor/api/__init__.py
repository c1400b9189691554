"""Session facade over the model, codec, validator and collaborators."""

from idsauthor.api.session import IdsSession, export_filename

__all__ = ["IdsSession", "export_filename"]
