"""
Header allow/deny filtering for logged requests and responses
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple


def _as_names(names: Optional[Iterable[str]]) -> Optional[Tuple[str, ...]]:
    """Normalize an option list to an ordered tuple, empty lists become None"""
    if names is None:
        return None
    if isinstance(names, str):
        names = [names]

    ordered = tuple(dict.fromkeys(names))
    return ordered or None


@dataclass(frozen=True)
class HeaderFilterConfig:
    """Allow/deny configuration applied to one side (request or response)"""

    allow: Optional[Tuple[str, ...]] = None
    deny: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, "allow", _as_names(self.allow))
        object.__setattr__(self, "deny", _as_names(self.deny))

    @classmethod
    def from_lists(
        cls,
        whitelist: Optional[Iterable[str]] = None,
        blacklist: Optional[Iterable[str]] = None,
    ) -> "HeaderFilterConfig":
        """Create a filter from whitelist/blacklist option values"""
        return cls(allow=_as_names(whitelist), deny=_as_names(blacklist))

    @property
    def is_passthrough(self) -> bool:
        return self.allow is None and self.deny is None


PASSTHROUGH = HeaderFilterConfig()


def filter_headers(
    headers: Mapping[str, str], config: Optional[HeaderFilterConfig] = None
) -> Dict[str, str]:
    """
    Filter a header mapping by name

    The allow list wins over the deny list when both are set. Names are
    matched exactly as stored. The result is always a new dict.
    """
    config = config or PASSTHROUGH

    if config.allow:
        allowed = set(config.allow)
        return {name: value for name, value in headers.items() if name in allowed}

    if config.deny:
        denied = set(config.deny)
        return {name: value for name, value in headers.items() if name not in denied}

    return dict(headers)
