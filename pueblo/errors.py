"""Engine error types."""


class ActionRejected(ValueError):
    """A submission was malformed or out of turn. No state was changed.

    The message is for logs; clients only ever see rules.ACTION_REJECTED_MESSAGE.
    """


class GameCorrupted(RuntimeError):
    """The game record is structurally inconsistent; the transition was aborted."""
