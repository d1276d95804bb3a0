"""Host hooks the CPU notifies while it runs."""


class Platform:
    """Silent host. Frontends subclass this and override the hooks."""

    def play_sound(self) -> None:
        """The sound timer became non-zero."""

    def stop_sound(self) -> None:
        """The sound timer reached zero."""
