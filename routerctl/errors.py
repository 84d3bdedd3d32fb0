"""Error types raised by the routerctl pipeline.

Every stage raises a subclass of :class:`RouterctlError`. The CLI catches the base
class, prints ``"<Kind>: <message>"`` on one line to stderr and exits with status 1.
"""


class RouterctlError(Exception):
    """Base class for all routerctl failures."""
    kind = "Error"

    def __str__(self) -> str:
        # Keep the CLI output on a single line
        return " ".join(super().__str__().split())

    def describe(self) -> str:
        return f"{self.kind}: {self}"


class UserInputError(RouterctlError):
    """Missing or invalid command line input."""
    kind = "UserInputError"


class ConfigNotFoundError(UserInputError):
    """The provider configuration file does not exist."""


class ConfigParseError(RouterctlError):
    """The provider configuration could not be turned into a ProviderConfig."""
    kind = "ConfigParseError"


class NoModelsError(ConfigParseError):
    """The provider configuration declares no models."""


class UnknownDefaultModelError(ConfigParseError):
    """``default_model`` names a model that is not declared."""


class RenderError(RouterctlError):
    """A template could not be fully rendered."""
    kind = "RenderError"


class ClusterApplyError(RouterctlError):
    """The control plane rejected a request or could not be reached."""
    kind = "ClusterApplyError"
