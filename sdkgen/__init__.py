"""sdkgen: generate client SDKs from OpenAPI descriptions."""

__version__ = "0.1.0"
