"""Explicit holder for the current authenticated identity."""

from collections.abc import Callable
from dataclasses import dataclass, field

from artspark.domain.errors import Unauthenticated
from artspark.domain.users import Identity


SessionListener = Callable[[Identity | None], None]


@dataclass
class SessionContext:
    """Current session state, passed into every service that needs it."""

    identity: Identity | None = None
    _listeners: list[SessionListener] = field(default_factory=list, repr=False)

    @property
    def uid(self) -> str | None:
        """Return the session uid, if signed in."""
        return self.identity.uid if self.identity else None

    def require(self) -> Identity:
        """Return the identity or raise when nobody is signed in."""
        if self.identity is None:
            raise Unauthenticated()
        return self.identity

    def set_identity(self, identity: Identity | None) -> None:
        """Replace the identity and notify listeners."""
        self.identity = identity
        for listener in list(self._listeners):
            listener(identity)

    def listen(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener, call it with the current identity, return a disposer."""
        self._listeners.append(listener)
        listener(self.identity)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose
