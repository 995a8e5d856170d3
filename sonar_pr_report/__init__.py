"""SonarQube pull request reporter."""

__version__ = "0.1.0"
