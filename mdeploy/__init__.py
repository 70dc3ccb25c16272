"""mdeploy: tag and publish releases of a monorepo."""

__version__ = "0.1.0"
