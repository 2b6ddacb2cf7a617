"""TeamCity terminal UI core package."""
