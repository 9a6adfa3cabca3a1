"""TrainingDesk backend - staff dashboard API for training events and rosters."""

__version__ = "0.1.0"
