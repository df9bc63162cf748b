"""Error types for change detection and reloading."""


class HotswapError(Exception):
    """Base class for hotswap errors."""


class NoVersionTag(HotswapError):
    """Raised when a module's version tag cannot be determined."""

    def __init__(self, module: str, reason: str):
        self.module = module
        self.reason = reason
        super().__init__(f"No version tag for {module}: {reason}")


class LoadFailure(HotswapError):
    """Raised by a loader when a module cannot be loaded fresh."""

    def __init__(self, module: str, reason: str):
        self.module = module
        self.reason = reason
        super().__init__(f"Failed to load {module}: {reason}")


class TickFailure(HotswapError):
    """Unexpected failure caught at the boundary of a check cycle."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Tick failed: {reason}")
