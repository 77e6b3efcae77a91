"""Project workflow engine: step board, commit history and review gate for learner projects."""

__version__ = "0.1.0"
