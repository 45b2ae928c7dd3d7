"""Form-checked exercise repetition counting from 2-D pose landmarks."""

__version__ = "0.1.0"
