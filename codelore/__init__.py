"""codelore: mine a source tree for conventions and review them into knowledge documents."""

__version__ = "0.1.0"
