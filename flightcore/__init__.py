"""Sequential state machine and a registry of one-shot and periodic timers."""

__version__ = "0.1.0"
__all__ = ["state_machine", "system_timer"]