"""Core building blocks of driveuploader."""
