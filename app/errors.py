from __future__ import annotations


class InvalidConfiguration(ValueError):
    """Symbol-set data or engine settings are unusable. Fatal at startup."""


class AssetLoadError(InvalidConfiguration):
    pass


class UnknownSymbolSet(ValueError):
    def __init__(self, set_id: str):
        super().__init__(f"Unknown symbol set: {set_id}")
        self.set_id = set_id


class InvalidPhase(ValueError):
    def __init__(self, action: str, phase: str):
        super().__init__(f"Action '{action}' not allowed in phase '{phase}'")
        self.action = action
        self.phase = phase


class UnknownTile(ValueError):
    def __init__(self, key: int):
        super().__init__(f"Unknown tile key: {key}")
        self.key = key


class ClickIgnored(ValueError):
    """Raised by click validators; the resolver turns it into a no-op."""


class SessionNotFound(LookupError):
    pass
