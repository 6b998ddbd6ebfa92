"""Exceptions shared by the asset layer, the pipeline and the HTTP routes."""


class AssetNotFound(FileNotFoundError):
    """A static dataset file is missing from the assets directory."""


class InvalidQuery(ValueError):
    """A request parameter is outside what the datasets support."""
