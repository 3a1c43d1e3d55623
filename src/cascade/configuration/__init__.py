"""Configuration lifecycle and property gateway."""

from cascade.configuration.configuration import Configuration, ConfigurationState

__all__ = ["Configuration", "ConfigurationState"]
