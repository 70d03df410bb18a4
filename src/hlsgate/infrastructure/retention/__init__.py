from .sweeper import RetentionSweeper, SweepReport

__all__ = ["RetentionSweeper", "SweepReport"]
