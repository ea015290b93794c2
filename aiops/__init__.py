"""aiops — scan a repository and generate AI-assistant configuration artifacts."""

__version__ = "0.1.0"
