"""Custom exception hierarchy for WavePulse."""


class WavePulseError(Exception):
    """Base exception for all WavePulse errors."""


class CommandExecutionError(WavePulseError):
    """The remote or local command channel failed to run a command."""


class GenerationError(WavePulseError):
    """Error calling the language model."""


class AnalysisError(WavePulseError):
    """Error while analyzing a query or source files."""


class ToolError(WavePulseError):
    """A tool was invoked with invalid arguments or is unknown."""


class PollingTimeout(WavePulseError):
    """A polled request did not complete within its attempt limit."""


class ConfigurationError(WavePulseError):
    """Error in system configuration."""
